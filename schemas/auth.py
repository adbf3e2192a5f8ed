"""Authentication schemas for requests and responses."""
from pydantic import BaseModel, Field, ConfigDict


class UserCredentials(BaseModel):
    """Schema for registration and login."""
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public view of a user."""
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Schema for register/login responses."""
    message: str
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class MessageOnly(BaseModel):
    message: str


class TokenPayload(BaseModel):
    """Schema for JWT token payload."""
    sub: str  # subject (user id)
    exp: int  # expiration time
    iat: int  # issued at
    type: str  # token type
