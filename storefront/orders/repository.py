from typing import List, Optional
from uuid import UUID
from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.orm import selectinload
from storefront.common.utils import now
from storefront.schema.full_schema import OrderItem, Orders


def _with_lines(stmt):
    return stmt.options(
        selectinload(Orders.user),
        selectinload(Orders.order_items).selectinload(OrderItem.product),
    ).execution_options(populate_existing=True)


class OrderStore:
    """Persistence for orders and their line items. Never commits on its own."""

    def __init__(self, session):
        self.session = session

    async def insert_order(self, user_id: int, shipping: dict) -> Orders:
        order = Orders(user_id=user_id, total_price=0, **shipping)
        self.session.add(order)
        await self.session.flush()
        return order

    async def insert_items(self, order_id: int, lines: List[dict]):
        # lines keep request order through `position`
        self.session.add_all([
            OrderItem(order_id=order_id, position=pos, **line)
            for pos, line in enumerate(lines)
        ])
        await self.session.flush()

    async def set_total(self, order_id: int, total_price: int):
        stmt = (
            update(Orders)
            .where(Orders.id == order_id)
            .values(total_price=total_price, updated_at=now())
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def fetch(self, order_pid: UUID) -> Optional[Orders]:
        stmt = _with_lines(select(Orders).where(Orders.public_id == order_pid))
        res = await self.session.execute(stmt)
        return res.scalar_one_or_none()

    async def fetch_all(self, user_id: Optional[int] = None) -> List[Orders]:
        stmt = select(Orders)
        if user_id is not None:
            stmt = stmt.where(Orders.user_id == user_id)
        # newest first
        stmt = _with_lines(stmt.order_by(desc(Orders.date_ordered), desc(Orders.id)))
        res = await self.session.execute(stmt)
        return list(res.scalars().all())

    async def update_status(self, order_pid: UUID, status: str) -> Optional[int]:
        stmt = (
            update(Orders)
            .where(Orders.public_id == order_pid)
            .values(status=status, updated_at=now())
            .returning(Orders.id)
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(stmt)
        return res.scalar_one_or_none()

    async def delete(self, order_pid: UUID) -> bool:
        res = await self.session.execute(select(Orders.id).where(Orders.public_id == order_pid))
        order_id = res.scalar_one_or_none()
        if order_id is None:
            return False

        # items first, the FK cascade is not relied upon
        await self.session.execute(
            delete(OrderItem).where(OrderItem.order_id == order_id).execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(Orders).where(Orders.id == order_id).execution_options(synchronize_session=False)
        )
        return True

    async def total_sales(self) -> int:
        res = await self.session.execute(select(func.coalesce(func.sum(Orders.total_price), 0)))
        return int(res.scalar_one())

    async def count(self) -> int:
        res = await self.session.execute(select(func.count(Orders.id)))
        return int(res.scalar_one())
