from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.common.utils import success_response
from storefront.db.dependencies import get_session
from storefront.orders.constants import logger
from storefront.orders.models import OrderCreateIn, OrderStatusUpdateIn
from storefront.orders.repository import OrderStore
from storefront.orders.services import create_order, delete_order, get_order, list_orders, update_order_status, user_orders

orders_router=APIRouter()
orders_admin_router=APIRouter()


@orders_router.post("")
async def place_order(payload: OrderCreateIn, session: AsyncSession = Depends(get_session)):

    logger.info("order.create.attempt", extra={"user_public_id": str(payload.user), "lines": len(payload.order_items)})
    order = await create_order(session, payload)
    return success_response({"order": order}, status_code=status.HTTP_201_CREATED)

# -------------------------------------------------------------------------------------------------------------

@orders_admin_router.get("")
async def get_orders(session: AsyncSession = Depends(get_session)):
    return success_response({"items": await list_orders(session)})


@orders_admin_router.get("/get/totalsales")
async def get_total_sales(session: AsyncSession = Depends(get_session)):
    return success_response({"totalSales": await OrderStore(session).total_sales()})


@orders_admin_router.get("/get/count")
async def get_orders_count(session: AsyncSession = Depends(get_session)):
    return success_response({"count": await OrderStore(session).count()})


@orders_admin_router.get("/get/userorders/{user_public_id}")
async def get_user_orders(user_public_id: UUID, session: AsyncSession = Depends(get_session)):
    return success_response({"items": await user_orders(session, user_public_id)})


@orders_admin_router.get("/{order_public_id}")
async def get_single_order(order_public_id: UUID, session: AsyncSession = Depends(get_session)):
    return success_response({"order": await get_order(session, order_public_id)})


@orders_admin_router.put("/{order_public_id}")
async def change_order_status(order_public_id: UUID, payload: OrderStatusUpdateIn,
                              session: AsyncSession = Depends(get_session)):
    return success_response({"order": await update_order_status(session, order_public_id, payload.status)})


@orders_admin_router.delete("/{order_public_id}")
async def remove_order(order_public_id: UUID, session: AsyncSession = Depends(get_session)):

    await delete_order(session, order_public_id)
    return success_response({"success": True, "message": "Order deleted successfully"})
