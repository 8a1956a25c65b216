"""
Worker directory and signup endpoints.

Listing workers and services is public; creating a worker directly is
admin only.  Signups are public and land in review with status
``Pending Review``.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from citysetu_api.app.api.deps import get_worker_service
from citysetu_api.app.core.security import require_admin
from citysetu_api.app.schemas.record import RecordRead
from citysetu_api.app.schemas.worker import SignupCreate, WorkerCreate
from citysetu_api.app.services.worker_service import WorkerService

router = APIRouter()


@router.get("/workers", response_model=Dict[str, Any])
async def list_workers(service: WorkerService = Depends(get_worker_service)) -> Dict[str, Any]:
    """Available workers, flat and grouped by service."""
    return await service.list_available()


@router.get("/services", response_model=Dict[str, Any])
async def list_services(service: WorkerService = Depends(get_worker_service)) -> Dict[str, Any]:
    return {"services": await service.list_services()}


@router.post("/workers", response_model=RecordRead, status_code=status.HTTP_201_CREATED)
async def create_worker(
    worker: WorkerCreate,
    service: WorkerService = Depends(get_worker_service),
    _admin: str = Depends(require_admin),
) -> RecordRead:
    """Add a worker directly, bypassing signup review (admin only)."""
    return await service.create_worker(worker)


@router.post("/signups", response_model=RecordRead, status_code=status.HTTP_201_CREATED)
@router.post("/workers/signup", response_model=RecordRead, status_code=status.HTTP_201_CREATED)
async def create_signup(
    signup: SignupCreate,
    service: WorkerService = Depends(get_worker_service),
) -> RecordRead:
    return await service.signup(signup)
