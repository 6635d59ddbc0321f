import uuid
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from ticket_engine.domain.tiers.models import TicketTier
from ticket_engine.domain.tiers.schemas import TierAvailabilityDTO
from ticket_engine.domain.exceptions import TierNotFound, TierInactive, CapacityExceeded, CapacityBelowSold


async def get_tier(db: AsyncSession, tier_id: uuid.UUID) -> TicketTier | None:
    return await db.scalar(select(TicketTier).where(TicketTier.id == tier_id))


async def list_event_tiers(db: AsyncSession, event_id: uuid.UUID, *, active_only: bool = True) -> list[TicketTier]:
    stmt = select(TicketTier).where(TicketTier.event_id == event_id)
    if active_only:
        stmt = stmt.where(TicketTier.is_active.is_(True))
    result = await db.scalars(stmt.order_by(TicketTier.display_order, TicketTier.name))
    return list(result.all())


async def reserve(db: AsyncSession, tier_id: uuid.UUID, quantity: int) -> int:
    """
    Claims `quantity` units of a tier's capacity in one conditional UPDATE.
    The capacity check and the increment happen in the same statement, so two
    callers racing for the last unit cannot both get a row back.
    Returns the capacity left after the reservation.
    """
    remaining = await db.scalar(
        update(TicketTier)
        .where(
            TicketTier.id == tier_id,
            TicketTier.is_active.is_(True),
            TicketTier.sold + quantity <= TicketTier.capacity
        )
        .values(sold=TicketTier.sold + quantity)
        .returning(TicketTier.capacity - TicketTier.sold)
        .execution_options(synchronize_session=False)
    )
    if remaining is not None:
        return remaining

    # nothing updated: re-read only to tell the caller why
    tier = await db.scalar(
        select(TicketTier)
        .where(TicketTier.id == tier_id)
        .execution_options(populate_existing=True)
    )
    if tier is None:
        raise TierNotFound(ctx={"tier_id": tier_id})
    if not tier.is_active:
        raise TierInactive(ctx={"tier_id": tier_id})
    raise CapacityExceeded(ctx={"tier_id": tier_id, "requested": quantity, "remaining": tier.remaining})


async def release(db: AsyncSession, tier_id: uuid.UUID, quantity: int) -> bool:
    released = await db.scalar(
        update(TicketTier)
        .where(TicketTier.id == tier_id, TicketTier.sold >= quantity)
        .values(sold=TicketTier.sold - quantity)
        .returning(TicketTier.id)
        .execution_options(synchronize_session=False)
    )
    return released is not None


async def availability(db: AsyncSession, tier_id: uuid.UUID) -> TierAvailabilityDTO:
    row = (await db.execute(
        select(TicketTier.id, TicketTier.capacity, TicketTier.sold).where(TicketTier.id == tier_id)
    )).first()
    if row is None:
        raise TierNotFound(ctx={"tier_id": tier_id})
    return TierAvailabilityDTO(tier_id=row.id, capacity=row.capacity, sold=row.sold,
                               remaining=row.capacity - row.sold)


async def set_capacity(db: AsyncSession, tier_id: uuid.UUID, capacity: int) -> None:
    updated = await db.scalar(
        update(TicketTier)
        .where(TicketTier.id == tier_id, TicketTier.sold <= capacity)
        .values(capacity=capacity)
        .returning(TicketTier.id)
        .execution_options(synchronize_session=False)
    )
    if updated is None:
        if await get_tier(db, tier_id) is None:
            raise TierNotFound(ctx={"tier_id": tier_id})
        raise CapacityBelowSold(ctx={"tier_id": tier_id, "capacity": capacity})


async def update_tier(tier: TicketTier, data: dict) -> TicketTier:
    for key, value in data.items():
        setattr(tier, key, value)
    return tier
