import uuid
from fastapi import APIRouter, Response, status
from ticket_engine.core.dependencies import db_dependency
from ticket_engine.domain.tiers.schemas import TierUpdateDTO, TierReadDTO, TierAvailabilityDTO
from ticket_engine.domain.tickets.schemas import PurchaseRequestDTO, TicketWithTokenDTO
from ticket_engine.services import event_service, availability_service, purchase_service
from ticket_engine.services.tickets_service import to_ticket_dto


router = APIRouter(prefix="/tiers", tags=["tiers"])


@router.patch("/{tier_id}", status_code=status.HTTP_200_OK, response_model=TierReadDTO)
async def update_tier(tier_id: uuid.UUID, schema: TierUpdateDTO, db: db_dependency):
    return await event_service.update_tier(db, tier_id, schema)


@router.get("/{tier_id}/availability", status_code=status.HTTP_200_OK, response_model=TierAvailabilityDTO)
async def get_tier_availability(tier_id: uuid.UUID, db: db_dependency):
    return await availability_service.tier_availability(db, tier_id)


@router.post("/{tier_id}/purchases", status_code=status.HTTP_201_CREATED, response_model=TicketWithTokenDTO)
async def purchase_tickets(tier_id: uuid.UUID, schema: PurchaseRequestDTO, db: db_dependency, response: Response):
    ticket = await purchase_service.purchase(db, tier_id, schema.buyer_id, schema.quantity)
    response.headers["Location"] = f"/tickets/{ticket.id}"
    return to_ticket_dto(ticket)
