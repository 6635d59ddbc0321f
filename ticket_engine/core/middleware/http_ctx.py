from contextvars import ContextVar, Token
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from ticket_engine.core.ctx import ROUTE_CTX, CLIENT_IP_CTX, DEVICE_ID_CTX, REDIS_CTX


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class HttpContextMiddleware(BaseHTTPMiddleware):
    """Exposes route, client ip, scanning device and the Redis client to audit code."""

    def __init__(self, app, device_id_header: str = "X-Device-ID"):
        super().__init__(app)
        self.device_id_header = device_id_header

    def _values(self, request: Request) -> dict[ContextVar, object]:
        values: dict[ContextVar, object] = {
            ROUTE_CTX: f"{request.method} {request.url.path}",
            CLIENT_IP_CTX: _client_ip(request),
            DEVICE_ID_CTX: request.headers.get(self.device_id_header) or None,
        }
        redis_client = getattr(request.app.state, "redis", None)
        if redis_client is not None:
            values[REDIS_CTX] = redis_client
        return values

    async def dispatch(self, request: Request, call_next):
        tokens: list[tuple[ContextVar, Token]] = [(var, var.set(value)) for var, value in self._values(request).items()]
        try:
            return await call_next(request)
        finally:
            for var, token in reversed(tokens):
                var.reset(token)
