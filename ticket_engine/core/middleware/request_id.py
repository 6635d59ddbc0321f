import re
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from ticket_engine.core.ctx import REQUEST_ID_CTX

_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _incoming_request_id(value: str | None) -> str:
    if value and _VALID_REQUEST_ID.match(value):
        return value
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next):
        rid = _incoming_request_id(request.headers.get(self.header_name))
        token = REQUEST_ID_CTX.set(rid)
        try:
            response = await call_next(request)
            response.headers[self.header_name] = rid
            return response
        finally:
            REQUEST_ID_CTX.reset(token)
