from decimal import Decimal
from datetime import datetime, timedelta, timezone
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from ticket_engine.domain.events.models import Event
from ticket_engine.domain.tiers.models import TicketTier
from ticket_engine.domain.tickets import crud as tickets_crud
from ticket_engine.domain.tickets.models import Ticket, PaymentState


def session_mock(mocker):
    db = mocker.Mock()
    db.commit = mocker.AsyncMock()
    db.rollback = mocker.AsyncMock()
    db.flush = mocker.AsyncMock()
    db.refresh = mocker.AsyncMock()
    db.scalar = mocker.AsyncMock()
    db.execute = mocker.AsyncMock()
    return db


def db_with_execute_first(mocker, row):
    res = mocker.Mock()
    res.first.return_value = row
    db = session_mock(mocker)
    db.execute = mocker.AsyncMock(return_value=res)
    return db, res


def locked_error() -> OperationalError:
    return OperationalError("UPDATE ticket_tiers", {}, Exception("database is locked"))


async def seed_event(
        sessionmaker: async_sessionmaker[AsyncSession],
        *,
        title: str = "Warehouse Night",
        host_id: str = "host-1",
        starts_at: datetime | None = None,
        tiers: list[dict] | None = None
) -> tuple[Event, list[TicketTier]]:
    tiers = tiers or [{"name": "General", "price": Decimal("1000.00"), "capacity": 1}]
    async with sessionmaker() as session:
        event = Event(
            title=title,
            host_id=host_id,
            starts_at=starts_at or datetime.now(timezone.utc) + timedelta(days=30),
        )
        for position, data in enumerate(tiers):
            event.tiers.append(TicketTier(display_order=position, **data))
        session.add(event)
        await session.commit()
        return event, list(event.tiers)


async def seed_ticket(
        sessionmaker: async_sessionmaker[AsyncSession],
        tier: TicketTier,
        *,
        buyer_id: str = "buyer-1",
        quantity: int = 1,
        payment_state: PaymentState = PaymentState.COMPLETED
) -> Ticket:
    """Writes a ticket directly, leaving the tier's sold counter alone."""
    async with sessionmaker() as session:
        ticket = await tickets_crud.create(
            session,
            tier_id=tier.id,
            event_id=tier.event_id,
            buyer_id=buyer_id,
            quantity=quantity,
            unit_price=tier.price,
            service_fee=Decimal("0.00"),
            total_paid=tier.price * quantity,
            payment_state=payment_state,
        )
        await session.commit()
        return ticket
