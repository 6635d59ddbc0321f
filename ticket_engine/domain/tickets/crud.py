import uuid
from decimal import Decimal
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from ticket_engine.domain.tickets.models import Ticket, TicketScan, PaymentState
from ticket_engine.domain.tickets.schemas import RedeemOutcome, RedeemStatus


async def create(
        db: AsyncSession,
        *,
        tier_id: uuid.UUID,
        event_id: uuid.UUID,
        buyer_id: str,
        quantity: int,
        unit_price: Decimal,
        service_fee: Decimal,
        total_paid: Decimal,
        payment_state: PaymentState = PaymentState.COMPLETED
) -> Ticket:
    ticket = Ticket(
        tier_id=tier_id,
        event_id=event_id,
        buyer_id=buyer_id,
        quantity_purchased=quantity,
        quantity_redeemed=0,
        payment_state=payment_state,
        unit_price=unit_price,
        service_fee=service_fee,
        total_paid=total_paid,
    )
    db.add(ticket)
    await db.flush()
    await db.refresh(ticket)
    return ticket


async def load(db: AsyncSession, ticket_id: uuid.UUID) -> Ticket | None:
    return await db.scalar(
        select(Ticket).where(Ticket.id == ticket_id).execution_options(populate_existing=True)
    )


def _classify_failed_redeem(ticket: Ticket | None, expected_event_id: uuid.UUID) -> RedeemOutcome:
    if ticket is None:
        return RedeemOutcome(status=RedeemStatus.NOT_FOUND)
    outcome = dict(
        ticket_id=ticket.id,
        event_id=ticket.event_id,
        buyer_id=ticket.buyer_id,
        quantity_purchased=ticket.quantity_purchased,
        quantity_redeemed=ticket.quantity_redeemed,
    )
    if ticket.event_id != expected_event_id:
        return RedeemOutcome(status=RedeemStatus.WRONG_EVENT, **outcome)
    if ticket.payment_state != PaymentState.COMPLETED:
        return RedeemOutcome(status=RedeemStatus.PAYMENT_INCOMPLETE, **outcome)
    return RedeemOutcome(status=RedeemStatus.FULLY_REDEEMED, **outcome)


async def redeem(
        db: AsyncSession,
        ticket_id: uuid.UUID,
        expected_event_id: uuid.UUID,
        *,
        device_id: str | None = None
) -> RedeemOutcome:
    """
    Consumes one admission from a ticket.
    Event match, payment state and the remaining-admissions check are all part of
    the UPDATE's WHERE clause, so concurrent scans of the same ticket serialize on
    the row and at most quantity_purchased of them can succeed.
    """
    row = (await db.execute(
        update(Ticket)
        .where(
            Ticket.id == ticket_id,
            Ticket.event_id == expected_event_id,
            Ticket.payment_state == PaymentState.COMPLETED,
            Ticket.quantity_redeemed < Ticket.quantity_purchased
        )
        .values(quantity_redeemed=Ticket.quantity_redeemed + 1, last_redeemed_at=func.now())
        .returning(Ticket.id, Ticket.event_id, Ticket.buyer_id, Ticket.quantity_purchased, Ticket.quantity_redeemed)
        .execution_options(synchronize_session=False)
    )).first()

    if row is None:
        return _classify_failed_redeem(await load(db, ticket_id), expected_event_id)

    db.add(TicketScan(ticket_id=row.id, scan_number=row.quantity_redeemed, device_id=device_id))
    await db.flush()

    return RedeemOutcome(
        status=RedeemStatus.REDEEMED,
        ticket_id=row.id,
        event_id=row.event_id,
        buyer_id=row.buyer_id,
        quantity_purchased=row.quantity_purchased,
        quantity_redeemed=row.quantity_redeemed,
    )

