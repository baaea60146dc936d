from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import  AsyncSession
from storefront.auth.constants import RESET_REQUEST_MESSAGE
from storefront.auth.dependencies import forgot_password_validation, reset_password_validation, signup_validation, verify_otp_validation
from storefront.auth.models import ForgotPasswordIn, ResetPasswordIn, SignupIn, VerifyOtpIn
from storefront.common.custom_exceptions import AuthError, NotFoundError
from storefront.common.utils import success_response
from storefront.db.dependencies import get_session
from storefront.otp.dependencies import get_otp_manager
from storefront.otp.services import OtpManager
from storefront.user.constants import logger
from storefront.user.models import UserUpdateIn
from storefront.user.repository import list_users, user_by_public_id
from storefront.user.services import register_user, remove_user, request_password_reset, reset_password, update_user
from storefront.user.utils import serialize_user


user_router=APIRouter()
user_admin_router=APIRouter()


@user_router.post("/register", status_code=status.HTTP_201_CREATED)
async def signup_user(payload: SignupIn = Depends(signup_validation), session: AsyncSession = Depends(get_session)):

    logger.info("signup.attempt", extra={"email": payload.email})
    user = await register_user(session, payload)
    return success_response({"message": "User created successfully.", "user": user}, 201)


@user_router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordIn = Depends(forgot_password_validation),
                          session: AsyncSession = Depends(get_session),
                          otp_manager: OtpManager = Depends(get_otp_manager)):

    await request_password_reset(session, otp_manager, payload.email)
    return success_response({"message": RESET_REQUEST_MESSAGE})


# verifying consumes the code
@user_router.post("/verify-otp")
async def verify_otp(payload: VerifyOtpIn = Depends(verify_otp_validation),
                     otp_manager: OtpManager = Depends(get_otp_manager)):

    if not await otp_manager.verify(payload.email, payload.otp):
        raise AuthError("Invalid or expired OTP", payload={"valid": False})

    return success_response({"message": "OTP verified successfully", "valid": True})


@user_router.post("/reset-password")
async def reset_user_password(payload: ResetPasswordIn = Depends(reset_password_validation),
                              session: AsyncSession = Depends(get_session),
                              otp_manager: OtpManager = Depends(get_otp_manager)):

    await reset_password(session, otp_manager, payload)
    return success_response({"message": "Password has been reset successfully"})

# -------------------------------------------------------------------------------------------------------------

@user_admin_router.get("")
async def get_users(session: AsyncSession = Depends(get_session)):
    users = await list_users(session)
    return success_response({"items": [serialize_user(u) for u in users]})


@user_admin_router.get("/{user_public_id}")
async def get_user(user_public_id: UUID, session: AsyncSession = Depends(get_session)):
    user = await user_by_public_id(session, user_public_id)
    if not user:
        raise NotFoundError("User not found")
    return success_response({"user": serialize_user(user)})


@user_admin_router.put("/{user_public_id}")
async def update_user_details(user_public_id: UUID, payload: UserUpdateIn,
                              session: AsyncSession = Depends(get_session)):
    user = await update_user(session, user_public_id, payload)
    return success_response({"message": "User updated", "user": user})


@user_admin_router.delete("/{user_public_id}")
async def delete_user_account(user_public_id: UUID, session: AsyncSession = Depends(get_session)):
    await remove_user(session, user_public_id)
    return success_response({"message": "User deleted successfully"})
