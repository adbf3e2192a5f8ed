from pydantic import BaseModel, Field
from typing import Optional

class ChatRequest(BaseModel):
    message: Optional[str] = Field(default=None, description="Content of the user's message")
