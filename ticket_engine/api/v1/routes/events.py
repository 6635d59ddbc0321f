import uuid
from typing import Annotated
from fastapi import APIRouter, Query, Response, status
from ticket_engine.core.dependencies import db_dependency
from ticket_engine.domain.events.schemas import EventCreateDTO, EventReadDTO
from ticket_engine.domain.tiers.schemas import TierReadDTO
from ticket_engine.domain.availability.schemas import EventAvailabilityDTO
from ticket_engine.services import event_service, availability_service


router = APIRouter(prefix="/events", tags=["events"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=EventReadDTO)
async def create_event(schema: EventCreateDTO, db: db_dependency, response: Response):
    event = await event_service.create_event(db, schema)
    response.headers["Location"] = f"/events/{event.id}"
    return event


@router.get("/{event_id}", status_code=status.HTTP_200_OK, response_model=EventReadDTO)
async def get_event(event_id: uuid.UUID, db: db_dependency):
    return await event_service.get_event(db, event_id)


@router.get("/{event_id}/tiers", status_code=status.HTTP_200_OK, response_model=list[TierReadDTO])
async def list_event_tiers(
        event_id: uuid.UUID,
        db: db_dependency,
        include_inactive: Annotated[bool, Query()] = False
):
    return await event_service.list_event_tiers(db, event_id, include_inactive=include_inactive)


@router.get("/{event_id}/availability", status_code=status.HTTP_200_OK, response_model=EventAvailabilityDTO)
async def get_event_availability(event_id: uuid.UUID, db: db_dependency):
    return await availability_service.event_availability(db, event_id)
