"""Pydantic schemas for thread and message responses."""
from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict


class ThreadResponse(BaseModel):
    """Schema for thread responses."""
    id: int
    user_id: int
    title: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Schema for message responses."""
    id: int
    thread_id: int
    role: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ThreadWithMessages(BaseModel):
    """A freshly created thread together with its first turn."""
    thread: ThreadResponse
    messages: List[MessageResponse]


class DeleteResponse(BaseModel):
    success: bool = True
