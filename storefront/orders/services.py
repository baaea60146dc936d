from typing import List
from uuid import UUID
from sqlalchemy.exc import SQLAlchemyError
from storefront.common.custom_exceptions import NotFoundError, PersistenceError, ProductNotFoundError, ValidationError
from storefront.orders.constants import MAX_LINE_QUANTITY, MAX_ORDER_TOTAL, logger
from storefront.orders.models import OrderCreateIn
from storefront.orders.repository import OrderStore
from storefront.orders.utils import compute_order_total, serialize_order
from storefront.products.repository import ProductStore
from storefront.schema.full_schema import OrderStatus
from storefront.user.repository import userid_by_public_id


def _check_line_items(payload: OrderCreateIn):
    if not payload.order_items:
        raise ValidationError("Order must contain at least one item")
    for item in payload.order_items:
        if not 1 <= item.quantity <= MAX_LINE_QUANTITY:
            raise ValidationError(f"Quantity must be between 1 and {MAX_LINE_QUANTITY}",
                                  details={"product": str(item.product), "quantity": item.quantity})


async def create_order(session, payload: OrderCreateIn) -> dict:
    """Price the requested lines against current product prices and persist the order.

    Either the order, all of its lines and its total are written, or nothing is.
    """
    _check_line_items(payload)

    user_id = await userid_by_public_id(session, payload.user)
    if user_id is None:
        raise NotFoundError("User not found")

    requested = [item.product for item in payload.order_items]
    prices = await ProductStore(session).resolve_prices(requested, lock=True)

    missing = sorted({str(pid) for pid in requested if pid not in prices})
    if missing:
        await session.rollback()
        logger.warning("order.create.unknown_products", extra={"missing": missing})
        raise ProductNotFoundError(details={"missing": missing})

    store = OrderStore(session)
    shipping = payload.model_dump(include={"shipping_address1", "shipping_address2", "city", "zip", "country", "phone"})
    lines = []
    for item in payload.order_items:
        product_id, unit_price = prices[item.product]
        lines.append({"product_id": product_id, "quantity": item.quantity, "unit_price_snapshot": unit_price})

    total_price = compute_order_total((l["unit_price_snapshot"], l["quantity"]) for l in lines)
    if total_price > MAX_ORDER_TOTAL:
        await session.rollback()
        raise ValidationError("Order total is too large", details={"total_price": total_price})

    try:
        order = await store.insert_order(user_id, shipping)
        await store.insert_items(order.id, lines)
        await store.set_total(order.id, total_price)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise PersistenceError("The order cannot be created", details={"stage": "order.create"}) from exc

    order = await store.fetch(order.public_id)
    logger.info("order.create.success", extra={"order_public_id": str(order.public_id),
                                               "lines": len(lines), "total_price": total_price})
    return serialize_order(order)


async def list_orders(session) -> List[dict]:
    return [serialize_order(o) for o in await OrderStore(session).fetch_all()]


async def get_order(session, order_pid: UUID) -> dict:
    order = await OrderStore(session).fetch(order_pid)
    if order is None:
        raise NotFoundError("Order not found")
    return serialize_order(order)


async def update_order_status(session, order_pid: UUID, status: OrderStatus) -> dict:
    store = OrderStore(session)
    if await store.update_status(order_pid, status.value) is None:
        raise NotFoundError("Order not found")
    await session.commit()

    logger.info("order.status.updated", extra={"order_public_id": str(order_pid), "status": status.value})
    return serialize_order(await store.fetch(order_pid))


async def delete_order(session, order_pid: UUID):
    store = OrderStore(session)
    try:
        deleted = await store.delete(order_pid)
        if deleted:
            await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise PersistenceError("The order cannot be deleted", details={"stage": "order.delete"}) from exc

    if not deleted:
        raise NotFoundError("Order not found")
    logger.info("order.deleted", extra={"order_public_id": str(order_pid)})


async def user_orders(session, user_pid: UUID) -> List[dict]:
    user_id = await userid_by_public_id(session, user_pid)
    if user_id is None:
        raise NotFoundError("User not found")
    return [serialize_order(o) for o in await OrderStore(session).fetch_all(user_id=user_id)]
