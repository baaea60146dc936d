from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import  AsyncSession
from storefront.db.dependencies import get_session
from storefront.common.logging_setup import get_logger

logger = get_logger("storefront.health")

home_router = APIRouter()


@home_router.get("/health")
async def health_check(session:AsyncSession=Depends(get_session)):
    try:
        await session.execute(select(1))
    except SQLAlchemyError:
        logger.exception("health.db_unreachable")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database connection error")

    return {"status": "healthy"}
