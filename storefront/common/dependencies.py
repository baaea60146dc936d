import hmac
from typing import Optional
from fastapi import Header, HTTPException, status
from storefront.config.admin_config import admin_config
from storefront.common.logging_setup import get_logger

logger = get_logger("storefront.admin")


async def require_admin_secret(x_admin_secret: Optional[str] = Header(None, alias="X-Admin-Secret")):
    expected = admin_config.ADMIN_SECRET
    # no configured secret means no admin access at all
    if not expected or not x_admin_secret or not hmac.compare_digest(x_admin_secret, expected):
        logger.warning("admin.unauthorized")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin credentials required")
