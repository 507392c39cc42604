from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import ConfigDict, EmailStr, Field, field_validator

from .base import CamelModel


def _normalize_email(v: str) -> str:
    return v.lower().strip() if v else v


class RegisterRequest(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "email": "jane@example.com",
                    "name": "Jane Doe",
                    "password": "password123!",
                }
            ]
        }
    )
    email: EmailStr = Field(..., max_length=255)
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8, max_length=20)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"email": "jane@example.com", "password": "password123!"}
            ]
        }
    )
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class ChangePasswordRequest(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"currentPassword": "password123!", "newPassword": "newPassword456!"}
            ]
        }
    )
    current_password: str = Field(..., min_length=8)
    new_password: str = Field(..., min_length=8)


class TokenResponse(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "accessToken": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                    "tokenType": "Bearer",
                }
            ]
        }
    )
    access_token: str
    token_type: str = "Bearer"


class UserOut(CamelModel):
    id: UUID
    email: str
    name: str
    created_at: Optional[datetime] = None
