# schemas/auth.py
from typing import Optional

from pydantic import BaseModel, Field


class SignUpRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str


class SignInRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str
    redirect_to: Optional[str] = Field("/", alias="redirectTo")

    class Config:
        populate_by_name = True


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., max_length=255)


class ResetPasswordRequest(BaseModel):
    token: str
    password: str
    confirm_password: str


class SignInResult(BaseModel):
    profile_id: str
    next: str = Field(..., description="Where the client should navigate")
