import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STORAGE_RETRY_WAIT_MULTIPLIER", "0.01")
os.environ.setdefault("STORAGE_RETRY_WAIT_MAX", "0.05")

import pytest
import importlib


SERVICE_MODULES = [
    "ticket_engine.services.purchase_service",
    "ticket_engine.services.check_in_service",
    "ticket_engine.services.event_service",
]

class _StubSpan:
    def __init__(
        self,
        *,
        scope: str,
        action: str,
        object_type: str | None = None,
        object_id=None,
        event_id=None,
        tier_id=None,
        ticket_id=None,
        buyer_id: str | None = None,
        meta: dict | None = None,
        **_ignored
    ):
        self.scope = scope
        self.action = action
        self.object_type = object_type
        self.object_id = object_id
        self.event_id = event_id
        self.tier_id = tier_id
        self.ticket_id = ticket_id
        self.buyer_id = buyer_id
        self.meta = dict(meta or {})
        self.entered = False
        self.exited = False
        self.exit_args = None

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exited = True
        self.exit_args = (exc_type, exc, tb)
        return False


@pytest.fixture(autouse=True)
def auditspan_stub(mocker):
    instances = []

    def factory(*a, **k):
        s = _StubSpan(*a, **k)
        instances.append(s)
        return s

    for mod in SERVICE_MODULES:
        importlib.import_module(mod)
        mocker.patch(f"{mod}.AuditSpan", side_effect=factory)

    return instances


@pytest.fixture
def no_retry_wait(mocker):
    from ticket_engine.core import config
    mocker.patch.object(config, "STORAGE_RETRY_WAIT_MULTIPLIER", 0)
    mocker.patch.object(config, "STORAGE_RETRY_WAIT_MAX", 0)
