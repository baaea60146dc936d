from storefront.common.utils import isoformat_or_none
from storefront.schema.full_schema import Users


def serialize_user(user: Users) -> dict:
    return {
        "id": str(user.public_id),
        "email": user.email,
        "name": user.name,
        "phone": user.phone,
        "is_admin": user.is_admin,
        "created_at": isoformat_or_none(user.created_at),
    }
