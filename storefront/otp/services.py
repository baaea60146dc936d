from datetime import datetime, timedelta
from typing import Callable
from sqlalchemy.exc import SQLAlchemyError
from storefront.common.custom_exceptions import DeliveryError, PersistenceError
from storefront.common.utils import now
from storefront.otp.constants import OTP_EXPIRE_MINUTES, OTP_LENGTH, logger
from storefront.otp.repository import OtpStore
from storefront.otp.utils import generate_otp


class OtpManager:
    """Issues and consumes single-use password reset codes keyed by email.

    `email` must already be normalized by the caller. The notifier is any
    object with an async ``send_password_reset_otp(email, code, expire_minutes)``.
    """

    def __init__(self, store: OtpStore, notifier, *, code_length: int = OTP_LENGTH,
                 expire_minutes: int = OTP_EXPIRE_MINUTES, clock: Callable[[], datetime] = now):
        self.store = store
        self.notifier = notifier
        self.code_length = code_length
        self.expire_minutes = expire_minutes
        self.clock = clock

    async def create(self, email: str) -> str:
        code = generate_otp(self.code_length)
        expires_at = self.clock() + timedelta(minutes=self.expire_minutes)

        try:
            await self.store.replace_for_email(email, code, expires_at)
        except SQLAlchemyError as exc:
            await self.store.rollback()
            raise PersistenceError(details={"stage": "otp.store"}) from exc

        # the new code is only committed once it has been handed to the mail channel
        try:
            await self.notifier.send_password_reset_otp(email, code, self.expire_minutes)
        except DeliveryError:
            await self.store.rollback()
            raise
        except Exception as exc:
            await self.store.rollback()
            raise DeliveryError(details={"stage": "otp.deliver", "reason": type(exc).__name__}) from exc

        try:
            await self.store.commit()
        except SQLAlchemyError as exc:
            await self.store.rollback()
            raise PersistenceError(details={"stage": "otp.commit"}) from exc

        logger.info("otp.created", extra={"email": email, "expires_at": expires_at.isoformat()})
        return code

    async def verify(self, email: str, code: str, commit: bool = True) -> bool:
        """True when a matching unexpired code was consumed.

        With commit=False the deletion stays in the open transaction so the
        caller can commit it together with its own writes.
        """
        try:
            consumed = await self.store.find_and_delete(email, code, self.clock())
            if commit:
                await self.store.commit()
        except SQLAlchemyError as exc:
            await self.store.rollback()
            raise PersistenceError(details={"stage": "otp.verify"}) from exc

        if consumed:
            logger.info("otp.verified", extra={"email": email})
        else:
            logger.info("otp.rejected", extra={"email": email})
        return consumed
