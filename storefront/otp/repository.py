from datetime import datetime
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.otp.utils import acquire_email_lock
from storefront.schema.full_schema import PasswordResetOtp


class OtpStore:
    """Persistence for password reset codes over one session.

    Nothing here commits on its own; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def replace_for_email(self, email: str, code: str, expires_at: datetime):
        await acquire_email_lock(self.session, email)
        # supersede: earlier codes for the email stop working in the same txn the new one appears
        await self.session.execute(
            delete(PasswordResetOtp)
            .where(PasswordResetOtp.email == email)
            .execution_options(synchronize_session=False)
        )
        otp = PasswordResetOtp(email=email, code=code, expires_at=expires_at)
        self.session.add(otp)
        await self.session.flush()

    async def find_and_delete(self, email: str, code: str, at: datetime) -> bool:
        """Consume a matching unexpired code in one statement.

        Expired matches are left in place for the retention sweep.
        """
        stmt = (
            delete(PasswordResetOtp)
            .where(
                PasswordResetOtp.email == email,
                PasswordResetOtp.code == code,
                PasswordResetOtp.expires_at > at,
            )
            .returning(PasswordResetOtp.id)
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(stmt)
        return len(res.scalars().all()) > 0

    async def purge_created_before(self, cutoff: datetime) -> int:
        stmt = (
            delete(PasswordResetOtp)
            .where(PasswordResetOtp.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(stmt)
        return res.rowcount or 0

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
