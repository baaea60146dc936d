from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.common.utils import success_response
from storefront.db.dependencies import get_session
from storefront.products.constants import PRODUCT_LIST_MAX, logger
from storefront.products.models import CategoryCreateIn, CategoryUpdateIn, ProductCreateIn, ProductUpdateIn
from storefront.products.repository import count_products, list_categories
from storefront.products.services import (create_category, create_product, featured_products, get_category,
                                          list_products, product_details, remove_category, remove_product,
                                          update_category, update_product)
from storefront.products.utils import serialize_category

prods_public_router=APIRouter()
prods_admin_router=APIRouter()
catg_public_router=APIRouter()
catg_admin_router=APIRouter()


@prods_admin_router.post("/")
async def add_product(payload: ProductCreateIn, session: AsyncSession = Depends(get_session)):

    logger.info("product.create.attempt", extra={"product_name": payload.name})
    product = await create_product(session, payload)
    return success_response({"message": "product created", "product": product}, status_code=status.HTTP_201_CREATED)


@prods_admin_router.patch("/{product_public_id}")
async def edit_product(product_public_id: UUID, payload: ProductUpdateIn, session: AsyncSession = Depends(get_session)):

    product = await update_product(session, product_public_id, payload)
    return success_response({"message": "product updated", "product": product})


@prods_admin_router.delete("/{product_public_id}")
async def drop_product(product_public_id: UUID, session: AsyncSession = Depends(get_session)):

    await remove_product(session, product_public_id)
    return success_response({"success": True, "message": "Product deleted successfully"})


@prods_public_router.get("")
async def get_products(category: Optional[UUID] = Query(None), featured: Optional[bool] = Query(None),
                       session: AsyncSession = Depends(get_session)):

    items = await list_products(session, category_pid=category, featured=featured)
    return success_response({"items": items})


@prods_public_router.get("/get/count")
async def get_product_count(session: AsyncSession = Depends(get_session)):
    return success_response({"count": await count_products(session)})


@prods_public_router.get("/get/featured/{count}")
async def get_featured_products(count: int = Path(..., ge=1, le=PRODUCT_LIST_MAX),
                                session: AsyncSession = Depends(get_session)):
    return success_response({"items": await featured_products(session, count)})


@prods_public_router.get("/{product_public_id}")
async def get_product(product_public_id: UUID, session: AsyncSession = Depends(get_session)):
    return success_response({"product": await product_details(session, product_public_id)})

# -------------------------------------------------------------------------------------------------------------

@catg_admin_router.post("/")
async def add_category(payload: CategoryCreateIn, session: AsyncSession = Depends(get_session)):

    category = await create_category(session, payload)
    return success_response({"message": "category created", "category": category}, status_code=status.HTTP_201_CREATED)


@catg_admin_router.put("/{category_public_id}")
async def edit_category(category_public_id: UUID, payload: CategoryUpdateIn, session: AsyncSession = Depends(get_session)):

    category = await update_category(session, category_public_id, payload)
    return success_response({"message": "category updated", "category": category})


@catg_admin_router.delete("/{category_public_id}")
async def drop_category(category_public_id: UUID, session: AsyncSession = Depends(get_session)):

    await remove_category(session, category_public_id)
    return success_response({"success": True, "message": "Category deleted successfully"})


@catg_public_router.get("")
async def get_categories(session: AsyncSession = Depends(get_session)):
    categories = await list_categories(session)
    return success_response({"items": [serialize_category(c) for c in categories]})


@catg_public_router.get("/{category_public_id}")
async def get_single_category(category_public_id: UUID, session: AsyncSession = Depends(get_session)):
    return success_response({"category": await get_category(session, category_public_id)})
