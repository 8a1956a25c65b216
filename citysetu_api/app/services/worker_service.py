"""
Service layer for workers and worker signups.

Public listings only ever show workers whose ``status`` is
``available``.  A worker record is produced either directly by an
administrator or by approving a signup; approval marks the signup
``Approved`` and then appends the worker.  Those are two separate
commits to two documents, so a failure between them leaves an
approved signup without a worker, which is logged and surfaced to the
caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from citysetu_api.app.core.errors import RecordValidationError
from citysetu_api.app.core.repository import RecordRepository, utc_timestamp
from citysetu_api.app.core.store import Record
from citysetu_api.app.schemas.worker import SignupCreate, WorkerCreate

logger = logging.getLogger(__name__)

PENDING_REVIEW = "Pending Review"
APPROVED = "Approved"
AVAILABLE = "available"


def worker_services(worker: Record) -> List[str]:
    """Every service a worker offers, from either ``service`` or ``services``."""
    names: List[str] = []
    services = worker.get("services")
    if isinstance(services, list):
        names.extend(str(s) for s in services if s)
    service = worker.get("service")
    if service and service not in names:
        names.insert(0, str(service))
    return names


def is_available(worker: Record) -> bool:
    return str(worker.get("status", "")).lower() == AVAILABLE


class WorkerService:
    """Service class for the worker directory and signups."""

    def __init__(self, repository: RecordRepository) -> None:
        self.repository = repository

    async def list_available(self) -> Dict[str, Any]:
        """Return available workers, both as a flat list and grouped by service.

        A worker offering several services appears in each group.
        Workers with no service are listed under ``"Other"``.
        """
        workers = await asyncio.to_thread(self.repository.list, "workers", is_available)
        grouped: Dict[str, List[Record]] = {}
        for worker in workers:
            for service in worker_services(worker) or ["Other"]:
                grouped.setdefault(service, []).append(worker)
        return {"workers": workers, "grouped": grouped}

    async def list_services(self) -> List[Dict[str, Any]]:
        """Distinct services offered by available workers, with worker counts."""
        workers = await asyncio.to_thread(self.repository.list, "workers", is_available)
        counts: Dict[str, int] = {}
        for worker in workers:
            for service in worker_services(worker):
                counts[service] = counts.get(service, 0) + 1
        return [{"name": name, "workers": counts[name]} for name in sorted(counts, key=str.lower)]

    async def create_worker(self, data: WorkerCreate) -> Record:
        worker = await asyncio.to_thread(
            self.repository.append, "workers", data.model_dump(exclude_none=True)
        )
        logger.info("Added worker %s (%s)", worker["id"], worker["name"])
        return worker

    async def signup(self, data: SignupCreate) -> Record:
        fields = data.model_dump(exclude_none=True)
        fields["status"] = PENDING_REVIEW
        return await asyncio.to_thread(self.repository.append, "signups", fields)

    async def pending_signups(self) -> List[Record]:
        """Signups awaiting review, newest first."""
        signups = await asyncio.to_thread(
            self.repository.list, "signups", lambda s: s.get("status") == PENDING_REVIEW
        )
        return sorted(signups, key=lambda s: s.get("timestamp") or "", reverse=True)

    async def approve(self, signup_id: str) -> Dict[str, Record]:
        """Approve a signup and publish the matching worker record.

        Raises ``NotFoundError`` for an unknown id and
        ``RecordValidationError`` if the signup was already approved.
        """

        def not_yet_approved(current: Record) -> None:
            if current.get("status") == APPROVED:
                raise RecordValidationError(f"Signup {signup_id} is already approved")

        # The status check runs inside the conditional write, so of two
        # concurrent approvals only one commits and goes on to add a worker.
        signup = await asyncio.to_thread(
            self.repository.find_and_update,
            "signups",
            signup_id,
            {"status": APPROVED, "approvedAt": utc_timestamp()},
            not_yet_approved,
        )
        fields = {
            k: v for k, v in signup.items() if k not in ("id", "timestamp", "status", "approvedAt")
        }
        fields["status"] = AVAILABLE
        fields["signupId"] = signup_id
        try:
            worker = await asyncio.to_thread(self.repository.append, "workers", fields)
        except Exception:
            logger.error("Signup %s approved but its worker record could not be created", signup_id)
            raise
        logger.info("Approved signup %s as worker %s", signup_id, worker["id"])
        return {"signup": signup, "worker": worker}
