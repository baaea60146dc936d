from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import  AsyncSession
from storefront.db.connection import async_session


async def get_session() -> AsyncGenerator[AsyncSession,None]:
    # one session per request, shared by every dependency of that request; an uncommitted txn is rolled back on close
    async with async_session() as session:
        yield session
