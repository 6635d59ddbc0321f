import uuid
from typing import Annotated
from fastapi import APIRouter, Depends, status
from ticket_engine.core.dependencies import db_dependency
from ticket_engine.core.pagination import PageDTO
from ticket_engine.domain.tickets.schemas import TicketWithTokenDTO, BuyerTicketsQueryDTO
from ticket_engine.services import tickets_service


router = APIRouter(tags=["tickets"])


@router.get("/buyers/{buyer_id}/tickets", status_code=status.HTTP_200_OK, response_model=PageDTO[TicketWithTokenDTO])
async def list_buyer_tickets(
        buyer_id: str,
        db: db_dependency,
        query: Annotated[BuyerTicketsQueryDTO, Depends()]
):
    return await tickets_service.list_buyer_tickets(db, buyer_id, query)


@router.get("/tickets/{ticket_id}", status_code=status.HTTP_200_OK, response_model=TicketWithTokenDTO)
async def get_ticket(ticket_id: uuid.UUID, db: db_dependency):
    return await tickets_service.get_ticket(db, ticket_id)
