from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        return normalize(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (str, int, float, bool, type(None))):
        return value
    return str(value)


def normalize_ctx(ctx: dict[str, Any]) -> dict[str, Any]:
    return {k: normalize(v) for k, v in ctx.items()}
