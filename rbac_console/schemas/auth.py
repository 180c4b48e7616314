import uuid

from pydantic import BaseModel, EmailStr, Field


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    username: str | None = Field(None, min_length=1, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class AuthUser(BaseModel):
    id: uuid.UUID
    email: str
    username: str | None = None
    roles: list[str] = Field(default_factory=list)


class AuthResponse(BaseModel):
    token: str
    user: AuthUser
