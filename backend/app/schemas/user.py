"""Pydantic schemas for signup and login."""
from pydantic import EmailStr, Field

from app.schemas.base import CamelModel, UserSummary


class SignupRequest(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginResponse(CamelModel):
    token: str
    user: UserSummary
