from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, StrictInt
from pydantic.alias_generators import to_camel
from storefront.schema.full_schema import OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# strict: booleans and floats are not quantities. Range is checked by the service (400)
class OrderItemIn(CamelModel):
    product: UUID
    quantity: StrictInt


class OrderCreateIn(CamelModel):
    order_items: List[OrderItemIn]
    shipping_address1: str
    shipping_address2: Optional[str] = None
    city: str
    zip: str
    country: str
    phone: str
    user: UUID


class OrderStatusUpdateIn(BaseModel):
    status: OrderStatus
