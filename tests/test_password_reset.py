from sqlalchemy import select
from conftest import password_hash_for, register, url_prefix
from storefront.auth.constants import RESET_REQUEST_MESSAGE
from storefront.auth.utils import pwd_context
from storefront.schema.full_schema import PasswordResetOtp, Users

email = "alice@example.com"


async def stored_hash(session_factory, address=email):
    async with session_factory() as session:
        user = (await session.execute(select(Users).where(Users.email == address))).scalar_one()
        return await password_hash_for(session, user.id)


async def test_register_rejects_duplicate_and_invalid_email(ac_client):
    await register(ac_client)

    resp = await ac_client.post(f"{url_prefix}/users/register",
                                json={"email": "ALICE@example.com", "password": "secret1", "name": "Alice"})
    assert resp.status_code == 400

    resp = await ac_client.post(f"{url_prefix}/users/register",
                                json={"email": "not-an-email", "password": "secret1", "name": "Alice"})
    assert resp.status_code == 400

    resp = await ac_client.post(f"{url_prefix}/users/register",
                                json={"email": "carol@example.com", "password": "123", "name": "Carol"})
    assert resp.status_code == 400


async def test_forgot_password_sends_code_to_known_user(ac_client, mailer, fixed_otp):
    await register(ac_client)

    resp = await ac_client.post(f"{url_prefix}/users/forgot-password", json={"email": " Alice@Example.com "})

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["data"]["message"] == RESET_REQUEST_MESSAGE
    assert "123456" not in resp.text
    assert mailer.sent == [(email, "123456", 15)]


async def test_forgot_password_does_not_reveal_unknown_email(ac_client, mailer, session_factory):
    resp = await ac_client.post(f"{url_prefix}/users/forgot-password", json={"email": "ghost@example.com"})

    assert resp.status_code == 200
    assert resp.json()["data"]["message"] == RESET_REQUEST_MESSAGE
    assert mailer.sent == []
    async with session_factory() as session:
        assert (await session.execute(select(PasswordResetOtp))).first() is None


async def test_forgot_password_requires_email(ac_client):
    resp = await ac_client.post(f"{url_prefix}/users/forgot-password", json={})
    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["message"] == "Email is required"


async def test_forgot_password_delivery_failure_looks_like_unknown_email(ac_client, mailer, session_factory):
    await register(ac_client)
    mailer.fail = True

    known = await ac_client.post(f"{url_prefix}/users/forgot-password", json={"email": email})
    unknown = await ac_client.post(f"{url_prefix}/users/forgot-password", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json()["data"] == unknown.json()["data"] == {"message": RESET_REQUEST_MESSAGE}
    assert "smtp_down" not in known.text
    # the undelivered code was rolled back
    async with session_factory() as session:
        assert (await session.execute(select(PasswordResetOtp))).first() is None


async def test_verify_otp_consumes_code(ac_client, fixed_otp):
    await register(ac_client)
    await ac_client.post(f"{url_prefix}/users/forgot-password", json={"email": email})

    resp = await ac_client.post(f"{url_prefix}/users/verify-otp", json={"email": email, "otp": "000000"})
    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["valid"] is False

    resp = await ac_client.post(f"{url_prefix}/users/verify-otp", json={"email": email, "otp": "123456"})
    assert resp.status_code == 200
    assert resp.json()["data"]["valid"] is True

    resp = await ac_client.post(f"{url_prefix}/users/verify-otp", json={"email": email, "otp": "123456"})
    assert resp.status_code == 400


async def test_verify_otp_requires_both_fields(ac_client):
    resp = await ac_client.post(f"{url_prefix}/users/verify-otp", json={"email": email})
    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["valid"] is False


async def test_reset_password_with_valid_code(ac_client, fixed_otp, session_factory):
    await register(ac_client)
    old_hash = await stored_hash(session_factory)
    await ac_client.post(f"{url_prefix}/users/forgot-password", json={"email": email})

    resp = await ac_client.post(f"{url_prefix}/users/reset-password",
                                json={"email": email, "otp": "123456", "newPassword": "brand-new"})

    assert resp.status_code == 200
    new_hash = await stored_hash(session_factory)
    assert new_hash != old_hash
    assert pwd_context.verify("brand-new", new_hash)

    # the code was spent by the reset
    resp = await ac_client.post(f"{url_prefix}/users/reset-password",
                                json={"email": email, "otp": "123456", "newPassword": "another1"})
    assert resp.status_code == 400


async def test_reset_password_rejects_bad_code(ac_client, fixed_otp, session_factory):
    await register(ac_client)
    old_hash = await stored_hash(session_factory)
    await ac_client.post(f"{url_prefix}/users/forgot-password", json={"email": email})

    resp = await ac_client.post(f"{url_prefix}/users/reset-password",
                                json={"email": email, "otp": "000000", "newPassword": "brand-new"})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "AUTH_ERROR"
    assert await stored_hash(session_factory) == old_hash


async def test_short_password_does_not_spend_code(ac_client, fixed_otp):
    await register(ac_client)
    await ac_client.post(f"{url_prefix}/users/forgot-password", json={"email": email})

    resp = await ac_client.post(f"{url_prefix}/users/reset-password",
                                json={"email": email, "otp": "123456", "newPassword": "abc"})
    assert resp.status_code == 400

    resp = await ac_client.post(f"{url_prefix}/users/reset-password",
                                json={"email": email, "otp": "123456", "new_password": "long-enough"})
    assert resp.status_code == 200


async def test_reset_password_unknown_user_and_missing_fields(ac_client):
    resp = await ac_client.post(f"{url_prefix}/users/reset-password",
                                json={"email": "ghost@example.com", "otp": "123456", "newPassword": "brand-new"})
    assert resp.status_code == 404

    resp = await ac_client.post(f"{url_prefix}/users/reset-password", json={"email": email, "otp": "123456"})
    assert resp.status_code == 400


async def test_responses_carry_request_id(ac_client):
    resp = await ac_client.post(f"{url_prefix}/users/forgot-password", json={"email": "ghost@example.com"},
                                headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"
    assert resp.json()["request_id"] == "req-123"
