import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from storefront.common.constants import request_id_ctx

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LEN = 128


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id (client supplied or generated) for logs and responses."""

    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get(REQUEST_ID_HEADER, "").strip()
        if not req_id or len(req_id) > MAX_REQUEST_ID_LEN:
            req_id = uuid.uuid4().hex

        token = request_id_ctx.set(req_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)

        response.headers[REQUEST_ID_HEADER] = req_id
        return response
