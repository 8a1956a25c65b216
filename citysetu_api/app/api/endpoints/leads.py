"""Lead capture endpoint for the landing page."""

from fastapi import APIRouter, Depends, status

from citysetu_api.app.api.deps import get_lead_service
from citysetu_api.app.schemas.lead import LeadCreate
from citysetu_api.app.schemas.record import RecordRead
from citysetu_api.app.services.lead_service import LeadService

router = APIRouter()


@router.post("/leads", response_model=RecordRead, status_code=status.HTTP_201_CREATED)
async def create_lead(
    lead: LeadCreate,
    service: LeadService = Depends(get_lead_service),
) -> RecordRead:
    return await service.create_lead(lead)
