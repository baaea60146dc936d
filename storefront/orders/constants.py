from storefront.common.logging_setup import get_logger

logger = get_logger("storefront.orders")

# orderitem.quantity is a 32-bit INTEGER column
MAX_LINE_QUANTITY = 2**31 - 1

# orders.total_price is BIGINT
MAX_ORDER_TOTAL = 2**63 - 1
