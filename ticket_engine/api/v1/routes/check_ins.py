import uuid
from fastapi import APIRouter, status
from ticket_engine.core.dependencies import db_dependency, profiles_dependency, device_id_dependency
from ticket_engine.domain.tickets.schemas import CheckInRequestDTO, ScanResult
from ticket_engine.services import check_in_service


router = APIRouter(prefix="/events/{event_id}/check-ins", tags=["check-in"])


@router.post("", status_code=status.HTTP_200_OK, response_model=ScanResult, response_model_exclude_none=True)
async def check_in(
        event_id: uuid.UUID,
        schema: CheckInRequestDTO,
        db: db_dependency,
        profiles: profiles_dependency,
        device_id: device_id_dependency
):
    return await check_in_service.check_in(db, schema.token, event_id, profiles=profiles, device_id=device_id)
