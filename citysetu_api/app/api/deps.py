"""
FastAPI dependencies handing request handlers their collaborators.

The repository is built once in ``create_app`` and kept on
``app.state``; services are cheap wrappers constructed per request.
"""

from fastapi import Depends, Request

from citysetu_api.app.core.repository import RecordRepository
from citysetu_api.app.services.admin_service import AdminService
from citysetu_api.app.services.booking_service import BookingService
from citysetu_api.app.services.chat_service import ChatService
from citysetu_api.app.services.lead_service import LeadService
from citysetu_api.app.services.worker_service import WorkerService


def get_repository(request: Request) -> RecordRepository:
    return request.app.state.repository


def get_booking_service(repository: RecordRepository = Depends(get_repository)) -> BookingService:
    return BookingService(repository)


def get_worker_service(repository: RecordRepository = Depends(get_repository)) -> WorkerService:
    return WorkerService(repository)


def get_lead_service(repository: RecordRepository = Depends(get_repository)) -> LeadService:
    return LeadService(repository)


def get_chat_service(repository: RecordRepository = Depends(get_repository)) -> ChatService:
    return ChatService(repository)


def get_admin_service(repository: RecordRepository = Depends(get_repository)) -> AdminService:
    return AdminService(repository)
