from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field
from storefront.products.constants import MAX_BASE_PRICE, MAX_STOCK_QTY


class CategoryCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    icon: Optional[str] = Field(None, max_length=128)
    color: Optional[str] = Field(None, max_length=32)


class CategoryUpdateIn(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    icon: Optional[str] = Field(None, max_length=128)
    color: Optional[str] = Field(None, max_length=32)

    model_config = {"extra": "forbid"}


class ProductCreateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: int = Field(..., ge=0, le=MAX_BASE_PRICE, description="Price in minor units (paise)")
    stock_qty: int = Field(0, ge=0, le=MAX_STOCK_QTY)
    is_featured: bool = False
    category_id: Optional[UUID] = None


class ProductUpdateIn(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: Optional[int] = Field(None, ge=0, le=MAX_BASE_PRICE)
    stock_qty: Optional[int] = Field(None, ge=0, le=MAX_STOCK_QTY)
    is_featured: Optional[bool] = None
    category_id: Optional[UUID] = None

    model_config = {"extra": "forbid"}   # unknown fields are rejected with 422
