import contextvars
from typing import Optional

# Context variable for the request id (set by RequestIdMiddleware, read by the log formatter)
request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)
