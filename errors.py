"""Error taxonomy shared by the services and the HTTP layer."""
from typing import Optional


class ChatAppError(Exception):
    """Base class for errors the API knows how to report."""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(ChatAppError):
    """Bad or missing input."""

    status_code = 400
    public_message = "Invalid input"


class AuthError(ChatAppError):
    """The request is not authenticated."""

    status_code = 401
    public_message = "Not authenticated"


class NotFoundError(ChatAppError):
    status_code = 404
    public_message = "Not found"


class UpstreamError(ChatAppError):
    """The completion service failed. The message never reaches clients."""

    status_code = 500
    public_message = "Failed to generate response"


class StorageError(ChatAppError):
    """The database failed. The message never reaches clients."""

    status_code = 500
    public_message = "Storage error"
