from typing import Dict, Iterable, List, Optional
from uuid import UUID
from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from storefront.common.custom_exceptions import ConflictError, NotFoundError
from storefront.common.utils import now
from storefront.schema.full_schema import OrderItem, Product, ProductCategory
from storefront.products.constants import PRODUCT_LIST_MAX, logger


class ProductStore:
    """Read access to the catalog used while pricing an order."""

    def __init__(self, session):
        self.session = session

    async def resolve_prices(self, product_pids: Iterable[UUID], lock: bool = False) -> Dict[UUID, tuple]:
        """Map public id -> (internal id, current base price) for the ids that exist."""
        unique_pids = list(set(product_pids))
        if not unique_pids:
            return {}

        stmt = select(Product.public_id, Product.id, Product.base_price).where(Product.public_id.in_(unique_pids))
        if lock:
            # price rows stay stable until the order commits (no-op on sqlite)
            stmt = stmt.with_for_update()

        res = await self.session.execute(stmt)
        return {row.public_id: (row.id, row.base_price) for row in res.all()}

    async def find_by_public_id(self, product_pid: UUID) -> Optional[Product]:
        stmt = (
            select(Product)
            .options(selectinload(Product.category))
            .where(Product.public_id == product_pid)
            .execution_options(populate_existing=True)
        )
        res = await self.session.execute(stmt)
        return res.scalar_one_or_none()


async def category_by_public_id(session, category_pid: UUID) -> Optional[ProductCategory]:
    stmt = select(ProductCategory).where(ProductCategory.public_id == category_pid)
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def category_id_by_public_id(session, category_pid: UUID) -> int:
    stmt = select(ProductCategory.id).where(ProductCategory.public_id == category_pid)
    res = await session.execute(stmt)
    cat_id = res.scalar_one_or_none()
    if cat_id is None:
        logger.warning("category.not_found", extra={"category_public_id": str(category_pid)})
        raise NotFoundError("Category not found")
    return cat_id


async def list_categories(session) -> List[ProductCategory]:
    res = await session.execute(select(ProductCategory).order_by(ProductCategory.name))
    return list(res.scalars().all())


async def insert_category(session, name: str, icon: Optional[str], color: Optional[str]) -> ProductCategory:
    try:
        category = ProductCategory(name=name, icon=icon, color=color)
        session.add(category)
        await session.flush()
        return category
    except IntegrityError:
        await session.rollback()
        logger.warning("category.create.duplicate", extra={"category_name": name})
        raise ConflictError("Category with that name already exists")


async def insert_product(session, values: dict) -> Product:
    try:
        product = Product(**values)
        session.add(product)
        await session.flush()
        return product
    except IntegrityError:
        await session.rollback()
        logger.warning("product.create.duplicate", extra={"product_name": values.get("name")})
        raise ConflictError("Product with that name already exists")


async def patch_product(session, product_pid: UUID, updates: dict) -> UUID:
    stmt = (
        update(Product)
        .where(Product.public_id == product_pid)
        .values(**updates, updated_at=now())
        .returning(Product.public_id)
        .execution_options(synchronize_session=False)
    )
    try:
        res = await session.execute(stmt)
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Product with that name already exists")

    updated_pid = res.scalar_one_or_none()
    if not updated_pid:
        logger.warning("product.update.not_found", extra={"product_public_id": str(product_pid)})
        raise NotFoundError("Product not found")
    return updated_pid


async def fetch_products(session, category_id: Optional[int] = None, featured: Optional[bool] = None,
                         limit: int = PRODUCT_LIST_MAX) -> List[Product]:
    stmt = select(Product).options(selectinload(Product.category))
    if category_id is not None:
        stmt = stmt.where(Product.category_id == category_id)
    if featured is not None:
        stmt = stmt.where(Product.is_featured == featured)
    # newest first
    stmt = stmt.order_by(desc(Product.created_at), Product.id).limit(limit)

    res = await session.execute(stmt)
    return list(res.scalars().all())


async def patch_category(session, category_pid: UUID, updates: dict) -> UUID:
    stmt = (
        update(ProductCategory)
        .where(ProductCategory.public_id == category_pid)
        .values(**updates)
        .returning(ProductCategory.public_id)
        .execution_options(synchronize_session=False)
    )
    try:
        res = await session.execute(stmt)
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Category with that name already exists")

    updated_pid = res.scalar_one_or_none()
    if not updated_pid:
        raise NotFoundError("Category not found")
    return updated_pid


async def delete_category(session, category_pid: UUID) -> bool:
    res = await session.execute(select(ProductCategory.id).where(ProductCategory.public_id == category_pid))
    cat_id = res.scalar_one_or_none()
    if cat_id is None:
        return False

    # products outlive their category
    await session.execute(
        update(Product).where(Product.category_id == cat_id).values(category_id=None, updated_at=now())
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(ProductCategory).where(ProductCategory.id == cat_id).execution_options(synchronize_session=False)
    )
    return True


async def delete_product(session, product_pid: UUID) -> bool:
    res = await session.execute(select(Product.id).where(Product.public_id == product_pid))
    product_id = res.scalar_one_or_none()
    if product_id is None:
        return False

    # order lines keep a reference to the product they were priced from
    ordered = await session.execute(select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1))
    if ordered.first() is not None:
        logger.warning("product.delete.referenced", extra={"product_public_id": str(product_pid)})
        raise ConflictError("Product is part of existing orders")

    await session.execute(
        delete(Product).where(Product.id == product_id).execution_options(synchronize_session=False)
    )
    return True


async def count_products(session) -> int:
    res = await session.execute(select(func.count(Product.id)))
    return int(res.scalar_one())
