from typing import List, Optional
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from storefront.common.custom_exceptions import ConflictError, ValidationError
from storefront.common.utils import now
from storefront.schema.full_schema import Credential, Orders, PasswordResetOtp, Users
from storefront.user.constants import logger


async def user_by_email(session,email) -> Optional[Users]:
    stmt=select(Users).where(Users.email==email)
    result=await session.execute(stmt)
    return result.scalar_one_or_none()


async def user_by_public_id(session,user_pid) -> Optional[Users]:
    stmt=select(Users).where(Users.public_id==user_pid)
    res=await session.execute(stmt)
    return res.scalar_one_or_none()


async def userid_by_public_id(session,user_pid):
    stmt=select(Users.id).where(Users.public_id==user_pid)
    res=await session.execute(stmt)
    user=res.first()
    return user[0] if user else None


async def create_user_with_password(session, email, name, phone, password_hash) -> Users:
    try:
        user = Users(email=email, name=name, phone=phone)
        session.add(user)
        await session.flush()

        session.add(Credential(user_id=user.id, password_hash=password_hash))
        await session.flush()
        return user
    except IntegrityError:
        await session.rollback()
        logger.warning("user.create.integrity_error", extra={"email": email})
        raise ValidationError("User with that email already exists")


async def update_password(session, user_id: int, new_hash: str):
    stmt = (
        update(Credential)
        .where(Credential.user_id == user_id)
        .values(password_hash=new_hash, updated_at=now())
        .returning(Credential.id)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    if res.scalar_one_or_none() is None:
        session.add(Credential(user_id=user_id, password_hash=new_hash))
        await session.flush()


async def list_users(session) -> List[Users]:
    stmt = select(Users).order_by(Users.created_at.desc(), Users.id.desc())
    res = await session.execute(stmt)
    return list(res.scalars().all())


async def patch_user(session, user_pid, updates: dict):
    stmt = (
        update(Users)
        .where(Users.public_id == user_pid)
        .values(**updates, updated_at=now())
        .returning(Users.id)
        .execution_options(synchronize_session=False)
    )
    try:
        res = await session.execute(stmt)
    except IntegrityError:
        await session.rollback()
        logger.warning("user.update.integrity_error", extra={"user_public_id": str(user_pid)})
        raise ConflictError("User with that email already exists")
    return res.scalar_one_or_none()


async def delete_user(session, user: Users):
    # orders keep their buyer, so a user with orders cannot be removed
    has_orders = await session.execute(select(Orders.id).where(Orders.user_id == user.id).limit(1))
    if has_orders.first() is not None:
        raise ConflictError("User has existing orders")

    await session.execute(
        delete(PasswordResetOtp).where(PasswordResetOtp.email == user.email).execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(Credential).where(Credential.user_id == user.id).execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(Users).where(Users.id == user.id).execution_options(synchronize_session=False)
    )
