from .threads import ThreadService
from .auth import AuthService
from .completion import CompletionClient, build_completion_client
from .context import ContextWindow

__all__ = ["ThreadService", "AuthService", "CompletionClient", "build_completion_client", "ContextWindow"]
