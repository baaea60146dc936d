import asyncio
from datetime import timedelta
from sqlalchemy import select
from storefront.common.utils import now
from storefront.otp.worker import OtpPurgeWorker
from storefront.schema.full_schema import PasswordResetOtp


async def seed(session_factory, rows):
    async with session_factory() as session:
        session.add_all([PasswordResetOtp(**row) for row in rows])
        await session.commit()


async def remaining_emails(session_factory):
    async with session_factory() as session:
        res = await session.execute(select(PasswordResetOtp.email).order_by(PasswordResetOtp.email))
        return list(res.scalars().all())


async def test_run_once_removes_only_rows_past_retention(session_factory):
    ts = now()
    await seed(session_factory, [
        {"email": "old@example.com", "code": "111111", "expires_at": ts - timedelta(minutes=75),
         "created_at": ts - timedelta(minutes=90)},
        {"email": "fresh@example.com", "code": "222222", "expires_at": ts + timedelta(minutes=10),
         "created_at": ts - timedelta(minutes=5)},
    ])

    worker = OtpPurgeWorker(session_factory, interval_seconds=3600, retention_minutes=60)
    removed = await worker.run_once()

    assert removed == 1
    assert await remaining_emails(session_factory) == ["fresh@example.com"]


async def test_expired_but_recent_rows_are_kept(session_factory):
    ts = now()
    await seed(session_factory, [
        {"email": "recent@example.com", "code": "333333", "expires_at": ts - timedelta(minutes=1),
         "created_at": ts - timedelta(minutes=16)},
    ])

    removed = await OtpPurgeWorker(session_factory, retention_minutes=60).run_once()

    assert removed == 0
    assert await remaining_emails(session_factory) == ["recent@example.com"]


async def test_worker_sweeps_on_start_and_stops_cleanly(session_factory):
    ts = now()
    await seed(session_factory, [
        {"email": "old@example.com", "code": "111111", "expires_at": ts - timedelta(hours=2),
         "created_at": ts - timedelta(hours=3)},
    ])

    swept = asyncio.Event()

    class ObservedWorker(OtpPurgeWorker):
        async def run_once(self):
            removed = await super().run_once()
            swept.set()
            return removed

    worker = ObservedWorker(session_factory, interval_seconds=3600, retention_minutes=60)
    worker.start()
    await asyncio.wait_for(swept.wait(), timeout=2.0)
    await worker.shutdown(wait_timeout=1.0)

    assert await remaining_emails(session_factory) == []
    assert worker._task is None
