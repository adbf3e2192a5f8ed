"""Thread model for conversation management."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Thread(Base):
    """
    SQLAlchemy model for conversation threads.

    Each thread represents a conversation between one user and the AI.
    Its messages live in the `messages` table and are removed before the
    thread itself.
    """
    __tablename__ = "threads"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False, default="New Chat")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    owner = relationship("User", back_populates="threads")
    messages = relationship("Message", back_populates="thread")
