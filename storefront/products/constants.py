from storefront.common.logging_setup import get_logger

logger = get_logger("storefront.products")

PRODUCT_LIST_MAX = 100
DEFAULT_FEATURED_COUNT = 4

# column bounds: base_price BIGINT, stock_qty INTEGER
MAX_BASE_PRICE = 2**63 - 1
MAX_STOCK_QTY = 2**31 - 1
