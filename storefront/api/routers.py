from fastapi import APIRouter, Depends
from storefront.api import version_prefix
from storefront.common.dependencies import require_admin_secret
from storefront.common.routes import home_router
from storefront.orders.routes import orders_admin_router, orders_router
from storefront.products.routes import catg_admin_router, catg_public_router, prods_admin_router, prods_public_router
from storefront.user.routes import user_admin_router, user_router


public_routers = APIRouter(prefix=version_prefix)

public_routers.include_router(user_router, prefix="/users",tags=["users"])
public_routers.include_router(catg_public_router, prefix="/categories",tags=["categories-public"])
public_routers.include_router(prods_public_router, prefix="/products",tags=["products-public"])
public_routers.include_router(orders_router, prefix="/orders",tags=["orders"])
public_routers.include_router(home_router,tags=["home"])

#--------------------------------------------------------------------------------------------------------

admin_routers = APIRouter(prefix=f"{version_prefix}/admin", dependencies=[Depends(require_admin_secret)])

admin_routers.include_router(user_admin_router, prefix="/users",tags=["users-admin"])
admin_routers.include_router(catg_admin_router, prefix="/categories",tags=["categories-admin"])
admin_routers.include_router(prods_admin_router, prefix="/products",tags=["products-admin"])
admin_routers.include_router(orders_admin_router, prefix="/orders",tags=["orders-admin"])
