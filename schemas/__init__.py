from .threads import ThreadResponse, MessageResponse, ThreadWithMessages, DeleteResponse
from .auth import UserCredentials, UserResponse, AuthResponse, MessageOnly, TokenPayload

__all__ = ["ThreadResponse", "MessageResponse", "ThreadWithMessages", "DeleteResponse",
           "UserCredentials", "UserResponse", "AuthResponse", "MessageOnly", "TokenPayload"]
