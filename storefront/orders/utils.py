from typing import Iterable, Tuple
from storefront.common.utils import isoformat_or_none


def line_total(unit_price: int, quantity: int) -> int:
    return unit_price * quantity


def compute_order_total(lines: Iterable[Tuple[int, int]]) -> int:
    """Sum of unit_price * quantity over (unit_price, quantity) pairs, in minor units."""
    return sum(line_total(price, qty) for price, qty in lines)


def serialize_order(order) -> dict:
    return {
        "id": str(order.public_id),
        "user": str(order.user.public_id),
        "orderItems": [
            {
                "product": str(item.product.public_id),
                "productName": item.product.name,
                "quantity": item.quantity,
                "unitPrice": item.unit_price_snapshot,
                "lineTotal": line_total(item.unit_price_snapshot, item.quantity),
            }
            for item in order.order_items
        ],
        "shippingAddress1": order.shipping_address1,
        "shippingAddress2": order.shipping_address2,
        "city": order.city,
        "zip": order.zip,
        "country": order.country,
        "phone": order.phone,
        "status": order.status,
        "totalPrice": order.total_price,
        "dateOrdered": isoformat_or_none(order.date_ordered),
    }
