from contextvars import ContextVar
from typing import Any

REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
ROUTE_CTX: ContextVar[str | None] = ContextVar("route", default=None)
CLIENT_IP_CTX: ContextVar[str | None] = ContextVar("client_ip", default=None)
DEVICE_ID_CTX: ContextVar[str | None] = ContextVar("device_id", default=None)
REDIS_CTX: ContextVar[Any] = ContextVar("redis", default=None)


def get_redis() -> Any:
    return REDIS_CTX.get()


def request_fields() -> dict[str, str | None]:
    """Metadata of the current HTTP request, empty values outside of one."""
    return {
        "request_id": REQUEST_ID_CTX.get(),
        "route": ROUTE_CTX.get(),
        "client_ip": CLIENT_IP_CTX.get(),
        "device_id": DEVICE_ID_CTX.get(),
    }
