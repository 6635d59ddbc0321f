import json
import time
import logging
from datetime import timezone, datetime
from typing import Any, Mapping
from sqlalchemy.exc import IntegrityError
from ticket_engine.core.config import AUDIT_STREAM, AUDIT_STREAM_MAXLEN
from ticket_engine.core.ctx import get_redis, request_fields
from ticket_engine.domain.exceptions import AppError


logger = logging.getLogger("ticket_engine.audit")

SUCCESS = "SUCCESS"
FAIL = "FAIL"


async def audit_emit(record: Mapping[str, Any]) -> str | None:
    """
    Appends one audit record to the Redis stream, tagged with the current request.
    Returns the stream entry id, or None when Redis is not configured or the write failed.
    Audit is best effort: a failed write is logged and never fails the caller.
    """
    r = get_redis()
    if r is None:
        return None

    payload = {**request_fields(), **record}
    try:
        return await r.xadd(
            AUDIT_STREAM,
            {"json": json.dumps(payload, default=str)},
            maxlen=AUDIT_STREAM_MAXLEN,
            approximate=True,
        )
    except Exception:
        logger.warning("Audit emit failed for %s/%s", record.get("scope"), record.get("action"), exc_info=True)
        return None


def _failure_reason(exc: BaseException) -> str:
    if isinstance(exc, AppError):
        return type(exc).__name__
    if isinstance(exc, IntegrityError):
        return "Integrity error"
    return str(exc) or type(exc).__name__


class AuditSpan:
    """
    Wraps one business operation and emits a single audit record when it ends.
    Attributes may be filled in while the operation runs (ids known only after a write).
    """

    def __init__(self, *, scope: str, action: str,
                 object_type: str | None = None, object_id: Any = None,
                 event_id: Any = None, tier_id: Any = None,
                 ticket_id: Any = None, buyer_id: str | None = None,
                 meta: Mapping[str, Any] | None = None):
        self.scope = scope
        self.action = action
        self.object_type = object_type
        self.object_id = object_id
        self.event_id = event_id
        self.tier_id = tier_id
        self.ticket_id = ticket_id
        self.buyer_id = buyer_id
        self.meta = dict(meta or {})
        self._started = 0.0

    def record(self, exc: BaseException | None) -> dict[str, Any]:
        return {
            "scope": self.scope,
            "action": self.action,
            "status": FAIL if exc else SUCCESS,
            "object_type": self.object_type,
            "object_id": self.object_id,
            "event_id": self.event_id,
            "tier_id": self.tier_id,
            "ticket_id": self.ticket_id,
            "buyer_id": self.buyer_id,
            "reason": _failure_reason(exc) if exc else None,
            "meta": self.meta,
        }

    async def __aenter__(self):
        self._started = time.perf_counter()
        self.meta.setdefault("occurred_at", datetime.now(timezone.utc).isoformat(timespec="milliseconds"))
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.meta["duration_ms"] = int((time.perf_counter() - self._started) * 1000)
        await audit_emit(self.record(exc))
        return False
