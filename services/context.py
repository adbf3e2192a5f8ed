"""Context window policy for the conversation sent upstream."""
from typing import Optional, Sequence, List, TypeVar

T = TypeVar("T")


class ContextWindow:
    """
    Decides which part of a conversation is sent to the completion service.

    With no limit (None or 0) the whole history goes upstream. With a limit,
    only the latest `max_messages` entries are kept. The newest message is
    always part of the window.
    """

    def __init__(self, max_messages: Optional[int] = None):
        if max_messages is not None and max_messages < 0:
            raise ValueError("max_messages must be positive or None")
        self.max_messages = max_messages or None

    @property
    def unbounded(self) -> bool:
        return self.max_messages is None

    def apply(self, messages: Sequence[T]) -> List[T]:
        if self.unbounded or len(messages) <= self.max_messages:
            return list(messages)
        return list(messages[-self.max_messages:])
