import asyncio
from datetime import timedelta
from typing import Optional
from storefront.common.utils import now
from storefront.otp.constants import OTP_PURGE_INTERVAL_SECONDS, OTP_RETENTION_MINUTES, logger
from storefront.otp.repository import OtpStore


class OtpPurgeWorker():
    """Background sweep that deletes reset codes past the retention window.

    Only a safety net for abandoned rows; expiry is enforced at verify time.
    """

    def __init__(self, session_factory, interval_seconds: int = OTP_PURGE_INTERVAL_SECONDS,
                 retention_minutes: int = OTP_RETENTION_MINUTES):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.retention_minutes = retention_minutes
        self._task: Optional[asyncio.Task] = None
        self._stopping = asyncio.Event()

    def start(self):
        if self._task is None:
            self._stopping.clear()
            self._task = asyncio.create_task(self._loop(), name="otp-purge")
            logger.info("otp.purge.started", extra={"interval_seconds": self.interval_seconds})

    async def shutdown(self, wait_timeout: float = 5.0):
        if self._task is None:
            return
        self._stopping.set()
        try:
            await asyncio.wait_for(self._task, timeout=wait_timeout)
        except asyncio.TimeoutError:
            logger.warning("otp.purge.stop_timeout")
            self._task.cancel()
        self._task = None
        logger.info("otp.purge.stopped")

    async def run_once(self) -> int:
        cutoff = now() - timedelta(minutes=self.retention_minutes)
        async with self.session_factory() as session:
            store = OtpStore(session)
            removed = await store.purge_created_before(cutoff)
            await store.commit()
        return removed

    async def _loop(self):
        while not self._stopping.is_set():
            try:
                removed = await self.run_once()
                if removed:
                    logger.info("otp.purge.removed", extra={"removed": removed})
            except Exception:
                # keep sweeping on the next tick
                logger.exception("otp.purge.failed")

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
