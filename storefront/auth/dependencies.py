from typing import Any, Dict, Optional
from email_validator import validate_email, EmailNotValidError
from fastapi import Body
from storefront.auth.constants import logger
from storefront.auth.models import ForgotPasswordIn, ResetPasswordIn, SignupIn, VerifyOtpIn
from storefront.auth.utils import normalize_email, validate_password
from storefront.common.custom_exceptions import ValidationError


def normalize_email_address(email: str) -> str:
    """
    Validate and return normalized email (lowercased, normalized by email-validator).
    Raises ValueError if invalid.
    """
    try:
        v = validate_email(email.strip(), check_deliverability=False)
        return v.normalized.lower()
    except EmailNotValidError as e:
        raise ValueError(str(e))


def _non_blank(payload: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


async def signup_validation(payload: Dict[str, Any] = Body(...)) -> SignupIn:
    email = _non_blank(payload, "email")
    password = _non_blank(payload, "password")
    name = _non_blank(payload, "name")
    if not email or not password or not name:
        raise ValidationError("Email, password and name are required")

    try:
        email = normalize_email_address(email)
    except ValueError as e:
        logger.warning("signup.validation.email_invalid", extra={"email": email, "error": str(e)})
        raise ValidationError(f"Invalid email: {e}")

    is_valid, detail = validate_password(password)
    if not is_valid:
        logger.warning("signup.validation.password_invalid", extra={"email": email})
        raise ValidationError(detail)

    return SignupIn(email=email, password=password, name=name.strip(), phone=_non_blank(payload, "phone"))


async def forgot_password_validation(payload: Dict[str, Any] = Body(...)) -> ForgotPasswordIn:
    email = _non_blank(payload, "email")
    if not email:
        raise ValidationError("Email is required")
    return ForgotPasswordIn(email=normalize_email(email))


async def verify_otp_validation(payload: Dict[str, Any] = Body(...)) -> VerifyOtpIn:
    email = _non_blank(payload, "email")
    otp = _non_blank(payload, "otp")
    if not email or not otp:
        raise ValidationError("Email and OTP are required", payload={"valid": False})
    # the code is matched exactly as typed
    return VerifyOtpIn(email=normalize_email(email), otp=otp)


async def reset_password_validation(payload: Dict[str, Any] = Body(...)) -> ResetPasswordIn:
    email = _non_blank(payload, "email")
    otp = _non_blank(payload, "otp")
    new_password = _non_blank(payload, "newPassword", "new_password")
    if not email or not otp or not new_password:
        raise ValidationError("Email, OTP, and new password are required")
    return ResetPasswordIn(email=normalize_email(email), otp=otp, new_password=new_password)
