import uuid
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from ticket_engine.core.auditing import AuditSpan
from ticket_engine.domain.events import crud
from ticket_engine.domain.events.models import Event
from ticket_engine.domain.events.schemas import EventCreateDTO
from ticket_engine.domain.tiers import crud as tiers_crud
from ticket_engine.domain.tiers.models import TicketTier
from ticket_engine.domain.tiers.schemas import TierUpdateDTO
from ticket_engine.domain.exceptions import EventNotFound, TierNotFound, Conflict, InvalidInput


async def create_event(db: AsyncSession, schema: EventCreateDTO) -> Event:
    async with AuditSpan(
        scope="EVENTS",
        action="CREATE_EVENT",
        object_type="event",
        meta={"host_id": schema.host_id, "tiers": len(schema.tiers)}
    ) as span:
        event = await crud.create_event(db, schema.model_dump(exclude={"tiers"}))
        for position, tier in enumerate(schema.tiers):
            data = tier.model_dump()
            if data["display_order"] is None:
                data["display_order"] = position
            event.tiers.append(TicketTier(**data))

        try:
            await db.flush()
        except IntegrityError as e:
            raise Conflict("Event could not be created", ctx={"host_id": schema.host_id}) from e

        span.object_id = event.id
        span.event_id = event.id
        return event


async def get_event(db: AsyncSession, event_id: uuid.UUID) -> Event:
    event = await crud.get_event_by_id(db, event_id)
    if not event:
        raise EventNotFound(ctx={"event_id": event_id})
    return event


async def list_event_tiers(db: AsyncSession, event_id: uuid.UUID, *, include_inactive: bool = False) -> list[TicketTier]:
    await get_event(db, event_id)
    return await tiers_crud.list_event_tiers(db, event_id, active_only=not include_inactive)


async def update_tier(db: AsyncSession, tier_id: uuid.UUID, schema: TierUpdateDTO) -> TicketTier:
    """
    Changes a tier's presentation, price or sale flag.
    Capacity goes through a conditional update so it can never drop below what
    is already sold, even while purchases are running.
    """
    data = schema.model_dump(exclude_unset=True)
    if not data:
        raise InvalidInput("Nothing to update", ctx={"tier_id": tier_id})
    if any(data.get(key) is None for key in ("name", "price", "is_active") if key in data):
        raise InvalidInput("name, price and is_active cannot be null", ctx={"tier_id": tier_id})

    async with AuditSpan(
        scope="EVENTS",
        action="UPDATE_TIER",
        object_type="ticket_tier",
        object_id=tier_id,
        tier_id=tier_id,
        meta={"fields": sorted(data)}
    ) as span:
        capacity = data.pop("capacity", None)
        if capacity is not None:
            await tiers_crud.set_capacity(db, tier_id, capacity)

        tier = await db.get(TicketTier, tier_id, populate_existing=True)
        if tier is None:
            raise TierNotFound(ctx={"tier_id": tier_id})

        if data:
            await tiers_crud.update_tier(tier, data)
            try:
                await db.flush()
            except IntegrityError as e:
                raise Conflict("Tier name already used for this event", ctx={"tier_id": tier_id}) from e

        span.event_id = tier.event_id
        return tier
