"""
Booking endpoints.

Customers create bookings through the chat widget and the telephony
integration posts call logs; both are public.  Status changes are
admin only and are routed by the id prefix (``CHAT-``, ``SIGNUP-``,
``WORKER-``, ``LEAD-``) to the owning collection.
"""

from fastapi import APIRouter, Depends, status

from citysetu_api.app.api.deps import get_booking_service
from citysetu_api.app.core.security import require_admin
from citysetu_api.app.schemas.booking import CallLog, ChatCreate, StatusUpdate
from citysetu_api.app.schemas.record import RecordRead
from citysetu_api.app.services.booking_service import BookingService

router = APIRouter()


@router.post("/chats", response_model=RecordRead, status_code=status.HTTP_201_CREATED)
@router.post("/log/chat", response_model=RecordRead, status_code=status.HTTP_201_CREATED)
async def create_chat_booking(
    booking: ChatCreate,
    service: BookingService = Depends(get_booking_service),
) -> RecordRead:
    """Create a booking; the response carries its ``CHAT-`` id."""
    return await service.create_booking(booking)


@router.post("/calls", response_model=RecordRead, status_code=status.HTTP_201_CREATED)
@router.post("/log/call", response_model=RecordRead, status_code=status.HTTP_201_CREATED)
async def log_call(
    call: CallLog,
    service: BookingService = Depends(get_booking_service),
) -> RecordRead:
    return await service.log_call(call)


@router.put("/update-status/{record_id}", response_model=RecordRead)
async def update_status(
    record_id: str,
    update: StatusUpdate,
    service: BookingService = Depends(get_booking_service),
    _admin: str = Depends(require_admin),
) -> RecordRead:
    """Change ``status`` and/or ``workerAssigned`` on a booking, signup, worker or lead (admin only)."""
    return await service.update_status(record_id, update)
