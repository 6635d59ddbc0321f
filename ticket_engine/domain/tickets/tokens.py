"""
Door token codec.

A token is compact, key-sorted JSON carrying ticket_id, event_id and buyer_id.
Decoding ignores any other keys and only insists on a non-empty ticket_id.
When a signing key is configured the token also carries `sig`, an HMAC-SHA256
over the three fields, and decoding rejects tokens without a valid one.
"""
import hmac
import json
import hashlib
from dataclasses import dataclass
from pydantic import ValidationError
from ticket_engine.domain.exceptions import InvalidInput
from ticket_engine.domain.tickets.schemas import TokenPayload

_FIELDS = ("ticket_id", "event_id", "buyer_id")


@dataclass(frozen=True)
class Malformed:
    reason: str


def _signature(payload: TokenPayload, key: str) -> str:
    message = "\x1f".join(getattr(payload, name) for name in _FIELDS)
    return hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest()


def _dumps(data: dict) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def encode(ticket_id: str, event_id: str, buyer_id: str, *, signing_key: str | None = None) -> str:
    try:
        payload = TokenPayload(ticket_id=str(ticket_id), event_id=str(event_id), buyer_id=str(buyer_id))
    except ValidationError as e:
        raise InvalidInput("Token needs a non-empty ticket id", ctx={"ticket_id": ticket_id}) from e
    data = payload.model_dump()
    if signing_key:
        data["sig"] = _signature(payload, signing_key)
    return _dumps(data)


def decode(token: str, *, signing_key: str | None = None) -> TokenPayload | Malformed:
    try:
        data = json.loads(token)
    except (TypeError, ValueError):
        return Malformed("not JSON")
    if not isinstance(data, dict):
        return Malformed("not an object")

    sig = data.pop("sig", None)
    try:
        payload = TokenPayload.model_validate(data)
    except ValidationError as e:
        return Malformed(f"invalid fields: {', '.join(str(err['loc'][0]) for err in e.errors() if err['loc'])}")

    if signing_key:
        if not isinstance(sig, str) or not hmac.compare_digest(sig, _signature(payload, signing_key)):
            return Malformed("bad signature")
    return payload
