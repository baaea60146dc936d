from typing import Optional
from pydantic import BaseModel, Field


class SignupIn(BaseModel):
    email: str = Field(..., examples=["user@example.com"])
    password: str = Field(..., examples=["StrongPassword"])
    name: str = Field(..., examples=["Full Name"])
    phone: Optional[str] = None


class ForgotPasswordIn(BaseModel):
    email: str


class VerifyOtpIn(BaseModel):
    email: str
    otp: str


class ResetPasswordIn(BaseModel):
    email: str
    otp: str
    new_password: str
