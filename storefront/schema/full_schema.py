import enum
import uuid
from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Text, BigInteger, Uuid
from uuid6 import uuid7
from datetime import datetime
from typing import List, Optional
from sqlmodel import Column, SQLModel, Field, Relationship, String
from storefront.common.utils import now


class Users(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)  #* optional only until the row is flushed
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    email: str = Field(sa_column=Column(String(320), nullable=False, unique=True))  # stored normalized (lowercased, trimmed)
    name: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    phone: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    is_admin: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    credentials: List["Credential"] = Relationship(back_populates="user")


class Credential(SQLModel, table=True):
    """Password hash for a user. One row per user."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"),
            index=True, unique=True, nullable=False))
    password_hash: str = Field(sa_column=Column(Text(), nullable=False))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), default=now,nullable=False))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), default=now,nullable=False, onupdate=now))

    user: "Users" = Relationship(back_populates="credentials")


# Password reset codes. Never updated: rows are inserted, consumed (deleted) or purged.
class PasswordResetOtp(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(sa_column=Column(String(320), nullable=False, index=True))
    code: str = Field(sa_column=Column(String(12), nullable=False))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=now, index=True))

    __table_args__ = (
        Index("ix_passwordresetotp_email_code", "email", "code"),
    )

#-----------------------------------------------------------------------------------------------------------

class ProductCategory(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    name: str = Field(sa_column=Column(String(200), unique=True, nullable=False))
    icon: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    color: Optional[str] = Field(default=None, sa_column=Column(String(32), nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

    products: List["Product"] = Relationship(back_populates="category")


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    name: str = Field(sa_column=Column(String(255), nullable=False,unique=True))
    description: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    base_price: int = Field(default=0, sa_column=Column(BigInteger, nullable=False, default=0))  # minor units (paise)
    stock_qty: int = Field(default=0, sa_column=Column(Integer(), nullable=False, default=0))
    is_featured: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    category_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("productcategory.id", ondelete="SET NULL"), index=True, nullable=True))

    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    category: Optional["ProductCategory"] = Relationship(back_populates="products")

# --------------------------------------------------------------------------------------------
class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# User --> Orders (1:many)
# Product <--> Order (many to many through OrderItem)
class Orders(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    user_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), index=True, nullable=False))
    status: str = Field(default=OrderStatus.PENDING.value, sa_column=Column(String(32), nullable=False, index=True, default=OrderStatus.PENDING.value))
    total_price: int = Field(default=0, sa_column=Column(BigInteger, nullable=False, default=0))  # minor units, snapshot at creation

    # contact & shipping snapshot
    shipping_address1: str = Field(sa_column=Column(String(255), nullable=False))
    shipping_address2: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    city: str = Field(sa_column=Column(String(128), nullable=False))
    zip: str = Field(sa_column=Column(String(32), nullable=False))
    country: str = Field(sa_column=Column(String(64), nullable=False))
    phone: str = Field(sa_column=Column(String(20), nullable=False))

    date_ordered: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now, index=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

    user: "Users" = Relationship()
    order_items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "OrderItem.position"},
    )


# Order --> OrderItems (1:many)
class OrderItem(SQLModel, table=True):

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(sa_column=Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True))
    product_id: int = Field(sa_column=Column(Integer, ForeignKey("product.id", ondelete="RESTRICT"), nullable=False))
    position: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))  # request order of the line
    quantity: int = Field(sa_column=Column(Integer, nullable=False))
    unit_price_snapshot: int = Field(sa_column=Column(BigInteger, nullable=False))

    order: "Orders" = Relationship(back_populates="order_items")
    product: "Product" = Relationship()
