from typing import Optional
from uuid import UUID
from storefront.common.custom_exceptions import NotFoundError, ValidationError
from storefront.products.constants import DEFAULT_FEATURED_COUNT, logger
from storefront.products.models import CategoryCreateIn, CategoryUpdateIn, ProductCreateIn, ProductUpdateIn
from storefront.products.repository import (ProductStore, category_by_public_id, category_id_by_public_id,
                                            delete_category, delete_product, fetch_products, insert_category,
                                            insert_product, patch_category, patch_product)
from storefront.products.utils import serialize_category, serialize_product


async def create_category(session, payload: CategoryCreateIn) -> dict:
    name = payload.name.strip()
    if not name:
        raise ValidationError("Category name is required")

    category = await insert_category(session, name, payload.icon, payload.color)
    await session.commit()
    logger.info("category.created", extra={"category_public_id": str(category.public_id)})
    return serialize_category(category)


async def create_product(session, payload: ProductCreateIn) -> dict:
    values = payload.model_dump(exclude={"category_id"})
    values["name"] = values["name"].strip()
    if payload.category_id is not None:
        values["category_id"] = await category_id_by_public_id(session, payload.category_id)

    product = await insert_product(session, values)
    await session.commit()

    product = await ProductStore(session).find_by_public_id(product.public_id)
    logger.info("product.created", extra={"product_public_id": str(product.public_id)})
    return serialize_product(product)


async def update_product(session, product_pid: UUID, payload: ProductUpdateIn) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No fields to update")

    if "category_id" in updates and updates["category_id"] is not None:
        updates["category_id"] = await category_id_by_public_id(session, updates["category_id"])

    await patch_product(session, product_pid, updates)
    await session.commit()

    product = await ProductStore(session).find_by_public_id(product_pid)
    logger.info("product.updated", extra={"product_public_id": str(product_pid), "fields": sorted(updates)})
    return serialize_product(product)


async def product_details(session, product_pid: UUID) -> dict:
    product = await ProductStore(session).find_by_public_id(product_pid)
    if product is None:
        raise NotFoundError("Product not found")
    return serialize_product(product)


async def list_products(session, category_pid: Optional[UUID] = None, featured: Optional[bool] = None) -> list:
    category_id = None
    if category_pid is not None:
        category = await category_by_public_id(session, category_pid)
        if category is None:
            raise NotFoundError("Category not found")
        category_id = category.id

    products = await fetch_products(session, category_id=category_id, featured=featured)
    return [serialize_product(p) for p in products]


async def featured_products(session, count: int = DEFAULT_FEATURED_COUNT) -> list:
    products = await fetch_products(session, featured=True, limit=count)
    return [serialize_product(p) for p in products]


async def remove_product(session, product_pid: UUID):
    if not await delete_product(session, product_pid):
        raise NotFoundError("Product not found")
    await session.commit()
    logger.info("product.deleted", extra={"product_public_id": str(product_pid)})


async def get_category(session, category_pid: UUID) -> dict:
    category = await category_by_public_id(session, category_pid)
    if category is None:
        raise NotFoundError("Category not found")
    return serialize_category(category)


async def update_category(session, category_pid: UUID, payload: CategoryUpdateIn) -> dict:
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No fields to update")
    if "name" in updates:
        if updates["name"] is None or not updates["name"].strip():
            raise ValidationError("Category name is required")
        updates["name"] = updates["name"].strip()

    await patch_category(session, category_pid, updates)
    await session.commit()

    category = await category_by_public_id(session, category_pid)
    logger.info("category.updated", extra={"category_public_id": str(category_pid), "fields": sorted(updates)})
    return serialize_category(category)


async def remove_category(session, category_pid: UUID):
    if not await delete_category(session, category_pid):
        raise NotFoundError("Category not found")
    await session.commit()
    logger.info("category.deleted", extra={"category_public_id": str(category_pid)})
