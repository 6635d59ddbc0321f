import uuid
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from ticket_engine.core.retry import read_step
from ticket_engine.domain.events import crud as events_crud
from ticket_engine.domain.tiers import crud as tiers_crud
from ticket_engine.domain.tiers.models import TicketTier
from ticket_engine.domain.tiers.schemas import TierAvailabilityDTO
from ticket_engine.domain.tickets.models import Ticket, PaymentState
from ticket_engine.domain.availability.schemas import TierUsageDTO, EventAvailabilityDTO, HostSummaryDTO
from ticket_engine.domain.exceptions import EventNotFound

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


def _completed(expr):
    return case((Ticket.payment_state == PaymentState.COMPLETED, expr), else_=0)


def _ticket_totals_subquery():
    return (
        select(
            Ticket.tier_id.label("tier_id"),
            func.sum(Ticket.quantity_redeemed).label("redeemed"),
            func.sum(_completed(Ticket.unit_price * Ticket.quantity_purchased)).label("revenue"),
            func.sum(_completed(Ticket.service_fee)).label("fees"),
        )
        .group_by(Ticket.tier_id)
        .subquery()
    )


def _tier_usage_select():
    totals = _ticket_totals_subquery()
    return (
        select(
            TicketTier.id,
            TicketTier.event_id,
            TicketTier.name,
            TicketTier.price,
            TicketTier.is_active,
            TicketTier.capacity,
            TicketTier.sold,
            func.coalesce(totals.c.redeemed, 0).label("redeemed"),
            totals.c.revenue,
            totals.c.fees,
        )
        .outerjoin(totals, totals.c.tier_id == TicketTier.id)
        .order_by(TicketTier.display_order, TicketTier.name)
    )


def _map_tier_row(row) -> TierUsageDTO:
    return TierUsageDTO(
        tier_id=row.id,
        name=row.name,
        price=_money(row.price),
        is_active=row.is_active,
        capacity=row.capacity,
        sold=row.sold,
        remaining=row.capacity - row.sold,
        redeemed=int(row.redeemed or 0),
        revenue=_money(row.revenue),
        fees=_money(row.fees),
    )


def _summarize_event(event_id: uuid.UUID, tiers: list[TierUsageDTO]) -> EventAvailabilityDTO:
    return EventAvailabilityDTO(
        event_id=event_id,
        total_capacity=sum(t.capacity for t in tiers),
        total_sold=sum(t.sold for t in tiers),
        total_remaining=sum(t.remaining for t in tiers),
        total_redeemed=sum(t.redeemed for t in tiers),
        revenue=sum((t.revenue for t in tiers), Decimal("0.00")),
        fees=sum((t.fees for t in tiers), Decimal("0.00")),
        tiers=tiers,
    )


async def tier_availability(db: AsyncSession, tier_id: uuid.UUID) -> TierAvailabilityDTO:
    return await read_step(db, lambda: tiers_crud.availability(db, tier_id), name="tier_availability")


async def event_availability(db: AsyncSession, event_id: uuid.UUID) -> EventAvailabilityDTO:
    """Capacity, sales, admissions and revenue of one event, per tier and in total."""
    async def _read() -> list[TierUsageDTO]:
        if await events_crud.get_event_by_id(db, event_id) is None:
            raise EventNotFound(ctx={"event_id": event_id})
        result = await db.execute(_tier_usage_select().where(TicketTier.event_id == event_id))
        return [_map_tier_row(row) for row in result]

    tiers = await read_step(db, _read, name="event_availability")
    return _summarize_event(event_id, tiers)


async def host_summary(db: AsyncSession, host_id: str) -> HostSummaryDTO:
    async def _read() -> tuple[list[datetime], dict[uuid.UUID, list[TierUsageDTO]]]:
        events = await events_crud.list_host_events(db, host_id)
        grouped: dict[uuid.UUID, list[TierUsageDTO]] = {e.id: [] for e in events}
        if grouped:
            result = await db.execute(_tier_usage_select().where(TicketTier.event_id.in_(list(grouped))))
            for row in result:
                grouped[row.event_id].append(_map_tier_row(row))
        return [_as_utc(e.starts_at) for e in events], grouped

    starts, by_event = await read_step(db, _read, name="host_summary")

    summaries = [_summarize_event(event_id, tiers) for event_id, tiers in by_event.items()]
    now = datetime.now(timezone.utc)

    return HostSummaryDTO(
        host_id=host_id,
        events_count=len(starts),
        upcoming_events_count=sum(1 for starts_at in starts if starts_at >= now),
        total_capacity=sum(s.total_capacity for s in summaries),
        total_sold=sum(s.total_sold for s in summaries),
        total_redeemed=sum(s.total_redeemed for s in summaries),
        revenue=sum((s.revenue for s in summaries), Decimal("0.00")),
        events=summaries,
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive timestamps
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
