import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from ticket_engine.core import config
from ticket_engine.core.pagination import PageDTO, paginate
from ticket_engine.core.retry import read_step
from ticket_engine.domain.tickets import crud, tokens
from ticket_engine.domain.tickets.models import Ticket, PaymentState
from ticket_engine.domain.tickets.schemas import TicketWithTokenDTO, BuyerTicketsQueryDTO
from ticket_engine.domain.exceptions import TicketNotFound


def ticket_token(ticket: Ticket) -> str:
    return tokens.encode(
        str(ticket.id), str(ticket.event_id), ticket.buyer_id, signing_key=config.TOKEN_SIGNING_KEY
    )


def to_ticket_dto(ticket: Ticket) -> TicketWithTokenDTO:
    return TicketWithTokenDTO(
        id=ticket.id,
        tier_id=ticket.tier_id,
        event_id=ticket.event_id,
        buyer_id=ticket.buyer_id,
        quantity_purchased=ticket.quantity_purchased,
        quantity_redeemed=ticket.quantity_redeemed,
        payment_state=ticket.payment_state,
        unit_price=ticket.unit_price,
        service_fee=ticket.service_fee,
        total_paid=ticket.total_paid,
        created_at=ticket.created_at,
        last_redeemed_at=ticket.last_redeemed_at,
        token=ticket_token(ticket),
    )


async def get_ticket(db: AsyncSession, ticket_id: uuid.UUID) -> TicketWithTokenDTO:
    async def _read() -> TicketWithTokenDTO | None:
        ticket = await crud.load(db, ticket_id)
        return to_ticket_dto(ticket) if ticket else None

    dto = await read_step(db, _read, name="load_ticket")
    if dto is None:
        raise TicketNotFound(ctx={"ticket_id": ticket_id})
    return dto


async def list_buyer_tickets(
        db: AsyncSession,
        buyer_id: str,
        query: BuyerTicketsQueryDTO
) -> PageDTO[TicketWithTokenDTO]:
    where = [Ticket.buyer_id == buyer_id, Ticket.payment_state == PaymentState.COMPLETED]
    if query.event_id is not None:
        where.append(Ticket.event_id == query.event_id)

    async def _read() -> tuple[list[TicketWithTokenDTO], int]:
        rows, total = await paginate(
            db,
            base_stmt=select(Ticket),
            page=query.page,
            page_size=query.page_size,
            where=where,
            order_by=[Ticket.created_at.desc(), Ticket.id],
        )
        return [to_ticket_dto(t) for t in rows], total

    items, total = await read_step(db, _read, name="list_buyer_tickets")

    return PageDTO[TicketWithTokenDTO](
        items=items,
        total=total,
        page=query.page,
        page_size=query.page_size
    )
