from typing import Optional
from pydantic import BaseModel, field_validator


class UserCreateRequest(BaseModel):
    username: str
    email: str
    password: str
    language: Optional[str] = None

    @field_validator("username", "password")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def looks_like_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("invalid email address")
        return value


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    username: str
    email: str


class LoginResponse(UserResponse):
    language: Optional[str] = None
