"""
Admin endpoints: signup review, dashboard data, statistics, backups
and hard deletes.  Every route here requires the admin token.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from citysetu_api.app.api.deps import get_admin_service, get_worker_service
from citysetu_api.app.core.security import require_admin
from citysetu_api.app.services.admin_service import AdminService
from citysetu_api.app.services.worker_service import WorkerService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/admin/pending")
async def pending_signups(service: WorkerService = Depends(get_worker_service)) -> Dict[str, Any]:
    """Signups still in review, newest first."""
    return {"pending": await service.pending_signups()}


@router.put("/admin/approve/{signup_id}")
async def approve_signup(
    signup_id: str,
    service: WorkerService = Depends(get_worker_service),
) -> Dict[str, Any]:
    """Approve a signup and publish it as an available worker."""
    return await service.approve(signup_id)


@router.get("/admin/data")
async def admin_data(service: AdminService = Depends(get_admin_service)) -> Dict[str, Any]:
    return await service.dashboard_data()


@router.get("/stats")
async def stats(service: AdminService = Depends(get_admin_service)) -> Dict[str, Any]:
    return await service.stats()


@router.get("/backup")
async def backup(service: AdminService = Depends(get_admin_service)) -> Dict[str, Any]:
    """Snapshot the chat bookings into ``backups/chats-<date>.json``."""
    return await service.backup_chats()


@router.delete("/admin/records/{record_id}")
async def delete_record(
    record_id: str,
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    """Permanently remove a record; the id prefix selects the collection."""
    await service.delete_record(record_id)
    return {"message": "Deleted", "id": record_id}
