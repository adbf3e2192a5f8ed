"""User model for authentication."""
from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from .threads import Base


class User(Base):
    """
    SQLAlchemy model for users.

    Only the password hash ever changes after registration.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    threads = relationship("Thread", back_populates="owner")
