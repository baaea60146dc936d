from storefront.common.utils import isoformat_or_none


def serialize_category(category) -> dict:
    return {
        "id": str(category.public_id),
        "name": category.name,
        "icon": category.icon,
        "color": category.color,
    }


def serialize_product(product) -> dict:
    category = product.category
    return {
        "id": str(product.public_id),
        "name": product.name,
        "description": product.description,
        "base_price": product.base_price,
        "stock_qty": product.stock_qty,
        "is_featured": product.is_featured,
        "category": serialize_category(category) if category is not None else None,
        "updated_at": isoformat_or_none(product.updated_at),
    }
