import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.ext.asyncio import AsyncSession
from ticket_engine.core import config
from ticket_engine.core.auditing import AuditSpan
from ticket_engine.core.retry import committed_step
from ticket_engine.domain.tiers import crud as tiers_crud
from ticket_engine.domain.tiers.models import TicketTier
from ticket_engine.domain.tickets import crud as tickets_crud
from ticket_engine.domain.tickets.models import Ticket, PaymentState
from ticket_engine.domain.exceptions import TierNotFound, TierInactive, CapacityExceeded, SoldOut, StorageFailure, \
    InvalidInput

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def quote(unit_price: Decimal, quantity: int, fee_rate: Decimal | None = None) -> tuple[Decimal, Decimal, Decimal]:
    """Returns (subtotal, service fee, total), each rounded to cents."""
    rate = config.SERVICE_FEE_RATE if fee_rate is None else fee_rate
    subtotal = (unit_price * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
    fee = (subtotal * rate).quantize(CENT, rounding=ROUND_HALF_UP)
    return subtotal, fee, subtotal + fee


async def _require_tier_on_sale(db: AsyncSession, tier_id: uuid.UUID) -> TicketTier:
    tier = await committed_step(db, lambda: tiers_crud.get_tier(db, tier_id), name="load_tier")
    if tier is None:
        raise TierNotFound(ctx={"tier_id": tier_id})
    if not tier.is_active:
        raise TierInactive(ctx={"tier_id": tier_id})
    return tier


async def _release_reservation(db: AsyncSession, tier_id: uuid.UUID, quantity: int) -> None:
    try:
        released = await committed_step(db, lambda: tiers_crud.release(db, tier_id, quantity), name="release")
    except Exception:
        logger.error(
            "Could not release %s reserved unit(s) on tier %s; capacity stays held",
            quantity, tier_id, exc_info=True
        )
        return
    if not released:
        logger.error("Release of %s unit(s) on tier %s matched no reservation", quantity, tier_id)


async def purchase(db: AsyncSession, tier_id: uuid.UUID, buyer_id: str, quantity: int) -> Ticket:
    """
    Sells `quantity` admissions of a tier to a buyer as one completed ticket.
    - Capacity is claimed first with a conditional update (never oversells)
    - The ticket row is written in a second step; if that fails the claimed
      capacity is released again before StorageFailure is raised
    - A tier without capacity left raises SoldOut and writes nothing
    """
    if quantity <= 0:
        raise InvalidInput("Quantity must be positive", ctx={"quantity": quantity})

    async with AuditSpan(
        scope="PURCHASE",
        action="BUY_TICKETS",
        object_type="ticket",
        tier_id=tier_id,
        buyer_id=buyer_id,
        meta={"quantity": quantity}
    ) as span:
        tier = await _require_tier_on_sale(db, tier_id)
        event_id = tier.event_id
        unit_price = tier.price
        subtotal, fee, total = quote(unit_price, quantity)
        span.event_id = event_id

        try:
            await committed_step(db, lambda: tiers_crud.reserve(db, tier_id, quantity), name="reserve")
        except CapacityExceeded as e:
            raise SoldOut(ctx=e.ctx) from e

        try:
            ticket = await committed_step(
                db,
                lambda: tickets_crud.create(
                    db,
                    tier_id=tier_id,
                    event_id=event_id,
                    buyer_id=buyer_id,
                    quantity=quantity,
                    unit_price=unit_price,
                    service_fee=fee,
                    total_paid=total,
                    payment_state=PaymentState.COMPLETED,
                ),
                name="create_ticket"
            )
        except Exception as e:
            logger.warning("Ticket write failed after reserving tier %s; compensating", tier_id, exc_info=True)
            await _release_reservation(db, tier_id, quantity)
            raise StorageFailure(ctx={"tier_id": tier_id, "quantity": quantity}) from e

        span.object_id = ticket.id
        span.ticket_id = ticket.id
        span.meta["total_paid"] = str(total)
        return ticket
