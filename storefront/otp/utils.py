import hashlib
import secrets
from sqlalchemy import text


def generate_otp(length: int = 6) -> str:
    """Uniformly random numeric code, zero padded to `length` digits."""
    if length < 1:
        raise ValueError("otp length must be positive")
    return str(secrets.randbelow(10 ** length)).zfill(length)


def email_lock_key(email: str) -> int:
    h = hashlib.sha256(email.encode()).digest()[:8]
    val = int.from_bytes(h, "big", signed=False)
    # convert to signed 64-bit
    if val > (1 << 63) - 1:
        val = val - (1 << 64)
    return val


async def acquire_email_lock(session, email: str):
    """Hold a transaction scoped advisory lock for `email` (postgres only).

    Concurrent supersede calls for the same email then queue up instead of
    both leaving a live code behind.
    """
    if session.get_bind().dialect.name != "postgresql":
        return
    await session.execute(text("SELECT pg_advisory_xact_lock(:k)"), {"k": email_lock_key(email)})
