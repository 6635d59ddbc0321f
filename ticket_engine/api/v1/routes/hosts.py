from fastapi import APIRouter, status
from ticket_engine.core.dependencies import db_dependency
from ticket_engine.domain.availability.schemas import HostSummaryDTO
from ticket_engine.services import availability_service


router = APIRouter(prefix="/hosts", tags=["hosts"])


@router.get("/{host_id}/summary", status_code=status.HTTP_200_OK, response_model=HostSummaryDTO)
async def get_host_summary(host_id: str, db: db_dependency):
    return await availability_service.host_summary(db, host_id)
