from sqlalchemy.exc import SQLAlchemyError
from storefront.auth.dependencies import normalize_email_address
from storefront.auth.models import ResetPasswordIn, SignupIn
from storefront.auth.utils import hash_password, validate_password
from storefront.common.custom_exceptions import AuthError, DeliveryError, NotFoundError, PersistenceError, ValidationError
from storefront.otp.services import OtpManager
from storefront.user.constants import logger
from storefront.user.models import UserUpdateIn
from storefront.user.repository import (create_user_with_password, delete_user, patch_user, update_password,
                                        user_by_email, user_by_public_id)
from storefront.user.utils import serialize_user


async def register_user(session, payload: SignupIn):

    if await user_by_email(session, payload.email):
        logger.warning("user.duplicate", extra={"email": payload.email})
        raise ValidationError("User with email already exists")

    user = await create_user_with_password(session, payload.email, payload.name, payload.phone,
                                           hash_password(payload.password))
    await session.commit()
    logger.info("user.created", extra={"user_public_id": str(user.public_id), "email": payload.email})
    return serialize_user(user)


async def request_password_reset(session, otp_manager: OtpManager, email: str):
    """Send a reset code when the account exists. Silent otherwise."""
    user = await user_by_email(session, email)
    if not user:
        logger.info("password_reset.requested.unknown_email", extra={"email": email})
        return

    try:
        await otp_manager.create(email)
    except DeliveryError:
        # answered like any other request; a failed send must not reveal that the account exists
        logger.error("password_reset.delivery_failed", extra={"user_public_id": str(user.public_id)})
        return
    logger.info("password_reset.requested", extra={"user_public_id": str(user.public_id)})


async def reset_password(session, otp_manager: OtpManager, payload: ResetPasswordIn):

    user = await user_by_email(session, payload.email)
    if not user:
        raise NotFoundError("User not found")

    # reject a weak password before the code is spent
    is_valid, detail = validate_password(payload.new_password)
    if not is_valid:
        raise ValidationError(detail)

    # code consumption and the new hash commit together
    if not await otp_manager.verify(payload.email, payload.otp, commit=False):
        raise AuthError("Invalid or expired OTP")

    try:
        await update_password(session, user.id, hash_password(payload.new_password))
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise PersistenceError(details={"stage": "password.update"}) from exc

    logger.info("password_reset.completed", extra={"user_public_id": str(user.public_id)})


async def update_user(session, user_pid, payload: UserUpdateIn) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No fields to update")

    if "email" in updates:
        try:
            updates["email"] = normalize_email_address(updates["email"] or "")
        except ValueError as e:
            raise ValidationError(f"Invalid email: {e}")
    if "name" in updates and updates["name"] is not None:
        updates["name"] = updates["name"].strip() or None

    if await patch_user(session, user_pid, updates) is None:
        raise NotFoundError("User not found")
    await session.commit()

    logger.info("user.updated", extra={"user_public_id": str(user_pid), "fields": sorted(updates)})
    return serialize_user(await user_by_public_id(session, user_pid))


async def remove_user(session, user_pid):
    user = await user_by_public_id(session, user_pid)
    if not user:
        raise NotFoundError("User not found")

    await delete_user(session, user)
    await session.commit()
    logger.info("user.deleted", extra={"user_public_id": str(user_pid)})
