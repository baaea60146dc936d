import asyncio
from datetime import timedelta
import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from conftest import FakeMailer, count_otps, create_tables
from storefront.common.custom_exceptions import DeliveryError, PersistenceError
from storefront.common.utils import now
from storefront.otp.repository import OtpStore
from storefront.otp.services import OtpManager
from storefront.otp.utils import acquire_email_lock, email_lock_key, generate_otp

email = "bob@example.com"


def make_manager(session, mailer=None, **kwargs):
    return OtpManager(OtpStore(session), mailer or FakeMailer(), **kwargs)


def test_generate_otp_is_numeric_and_fixed_length():
    for _ in range(50):
        code = generate_otp()
        assert len(code) == 6
        assert code.isdigit()


def test_generate_otp_keeps_leading_zeros(monkeypatch):
    monkeypatch.setattr("storefront.otp.utils.secrets.randbelow", lambda upper: 42)
    assert generate_otp() == "000042"


def test_generate_otp_rejects_non_positive_length():
    with pytest.raises(ValueError):
        generate_otp(0)


async def test_create_delivers_code_and_stores_one_record(db_session):
    mailer = FakeMailer()
    manager = make_manager(db_session, mailer)

    code = await manager.create(email)

    assert mailer.sent == [(email, code, 15)]
    assert await count_otps(db_session, email) == 1


async def test_new_code_supersedes_previous(db_session, fixed_otp):
    fixed_otp[:] = ["111111", "222222"]
    manager = make_manager(db_session)

    first = await manager.create(email)
    second = await manager.create(email)

    assert (first, second) == ("111111", "222222")
    assert await count_otps(db_session, email) == 1
    assert await manager.verify(email, first) is False
    assert await manager.verify(email, second) is True


async def test_code_is_single_use(db_session):
    manager = make_manager(db_session)
    code = await manager.create(email)

    assert await manager.verify(email, code) is True
    assert await manager.verify(email, code) is False
    assert await count_otps(db_session, email) == 0


async def test_wrong_code_does_not_consume_active_code(db_session, fixed_otp):
    manager = make_manager(db_session)
    await manager.create(email)

    assert await manager.verify(email, "000000") is False
    assert await manager.verify("other@example.com", "123456") is False
    assert await manager.verify(email, "123456") is True


async def test_expired_code_is_rejected_and_left_for_purge(db_session):
    issued_at = now() - timedelta(minutes=16)
    issuer = make_manager(db_session, clock=lambda: issued_at)
    code = await issuer.create(email)

    verifier = make_manager(db_session)
    assert await verifier.verify(email, code) is False
    assert await count_otps(db_session, email) == 1


async def test_code_valid_just_before_expiry(db_session):
    issued_at = now() - timedelta(minutes=14)
    code = await make_manager(db_session, clock=lambda: issued_at).create(email)

    assert await make_manager(db_session).verify(email, code) is True


async def test_delivery_failure_keeps_previous_code(db_session, fixed_otp):
    fixed_otp[:] = ["111111", "222222"]
    mailer = FakeMailer()
    manager = make_manager(db_session, mailer)
    await manager.create(email)

    mailer.fail = True
    with pytest.raises(DeliveryError):
        await manager.create(email)

    assert await manager.verify(email, "222222") is False
    assert await manager.verify(email, "111111") is True


async def test_unexpected_notifier_error_becomes_delivery_error(db_session):

    class BrokenMailer:
        async def send_password_reset_otp(self, email, code, expire_minutes):
            raise ConnectionError("smtp unreachable")

    manager = make_manager(db_session, BrokenMailer())
    with pytest.raises(DeliveryError):
        await manager.create(email)
    assert await count_otps(db_session, email) == 0


async def test_verify_without_commit_can_be_rolled_back(db_session):
    manager = make_manager(db_session)
    code = await manager.create(email)

    assert await manager.verify(email, code, commit=False) is True
    await db_session.rollback()

    assert await manager.verify(email, code) is True


def _db_down(*args, **kwargs):
    raise OperationalError("DELETE FROM passwordresetotp", None, Exception("database is locked"))


async def test_store_failure_on_create_keeps_previous_code(db_session, fixed_otp, monkeypatch):
    fixed_otp[:] = ["111111", "222222"]
    mailer = FakeMailer()
    await make_manager(db_session, mailer).create(email)

    # the supersede delete runs, then the insert flush fails
    monkeypatch.setattr(AsyncSession, "flush", _db_down)
    with pytest.raises(PersistenceError) as exc:
        await make_manager(db_session, mailer).create(email)
    monkeypatch.undo()

    assert exc.value.details == {"stage": "otp.store"}
    assert len(mailer.sent) == 1
    assert await count_otps(db_session, email) == 1
    assert await make_manager(db_session).verify(email, "111111") is True


async def test_commit_failure_on_create_keeps_previous_code(db_session, fixed_otp, monkeypatch):
    fixed_otp[:] = ["111111", "222222"]
    await make_manager(db_session).create(email)

    failing = make_manager(db_session)
    monkeypatch.setattr(failing.store, "commit", _db_down)
    with pytest.raises(PersistenceError) as exc:
        await failing.create(email)

    assert exc.value.details == {"stage": "otp.commit"}
    manager = make_manager(db_session)
    assert await manager.verify(email, "222222") is False
    assert await manager.verify(email, "111111") is True


async def test_store_failure_on_verify_leaves_code_usable(db_session, monkeypatch):
    code = await make_manager(db_session).create(email)

    failing = make_manager(db_session)
    monkeypatch.setattr(failing.store, "commit", _db_down)
    with pytest.raises(PersistenceError) as exc:
        await failing.verify(email, code)

    assert exc.value.details == {"stage": "otp.verify"}
    assert await make_manager(db_session).verify(email, code) is True


async def test_concurrent_verifies_consume_code_once(tmp_path):
    # separate connections to one file database, so the two deletes really race
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'otp.db'}")
    factory = async_sessionmaker(bind=eng, class_=AsyncSession, expire_on_commit=False)
    try:
        await create_tables(eng)
        async with factory() as session:
            code = await make_manager(session).create(email)

        async with factory() as first, factory() as second:
            results = await asyncio.gather(
                make_manager(first).verify(email, code),
                make_manager(second).verify(email, code),
            )

        assert sorted(results) == [False, True]
        async with factory() as session:
            assert await count_otps(session, email) == 0
    finally:
        await eng.dispose()


def test_email_lock_key_is_stable_signed_64_bit():
    key = email_lock_key(email)

    assert key == email_lock_key(email)
    assert key != email_lock_key("other@example.com")
    for addr in (email, "other@example.com", "x@y.z", ""):
        assert -(1 << 63) <= email_lock_key(addr) <= (1 << 63) - 1


class _RecordingSession:
    def __init__(self, dialect_name):
        self.dialect_name = dialect_name
        self.executed = []

    def get_bind(self):
        dialect = type("Dialect", (), {"name": self.dialect_name})()
        return type("Bind", (), {"dialect": dialect})()

    async def execute(self, stmt, params=None):
        self.executed.append((str(stmt), params))


async def test_email_lock_taken_on_postgres_only():
    pg = _RecordingSession("postgresql")
    await acquire_email_lock(pg, email)
    assert pg.executed == [("SELECT pg_advisory_xact_lock(:k)", {"k": email_lock_key(email)})]

    lite = _RecordingSession("sqlite")
    await acquire_email_lock(lite, email)
    assert lite.executed == []
