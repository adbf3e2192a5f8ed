from .threads import Thread, Base
from .users import User
from .messages import Message, MessageRole

__all__ = ["Thread", "User", "Message", "MessageRole", "Base"]
