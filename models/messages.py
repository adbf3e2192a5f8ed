"""Message model for the turns of a thread."""
import enum
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, CheckConstraint, String, func
from sqlalchemy.orm import relationship
from .threads import Base


class MessageRole(str, enum.Enum):
    """Who authored a message."""
    USER = "user"
    ASSISTANT = "assistant"


class Message(Base):
    """
    SQLAlchemy model for a single message.

    Messages are append-only: they are created in user/assistant pairs and
    only ever removed together with their thread. `id` is monotonic and
    breaks ties between messages with the same `created_at`.
    """
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    thread_id = Column(Integer, ForeignKey("threads.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    thread = relationship("Thread", back_populates="messages")

    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant')", name="ck_messages_role"),
    )
