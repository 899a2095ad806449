from pydantic import BaseModel, field_validator

from onboard.schemas.user import UserPublic


class SigninRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if not cleaned:
            raise ValueError("Email and password are required")
        return cleaned


class AdminLoginRequest(BaseModel):
    password: str


class AuthResponse(BaseModel):
    success: bool = True
    user: UserPublic


class MessageResponse(BaseModel):
    success: bool = True
    message: str
