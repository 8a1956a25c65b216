"""
Service layer for chat bookings, call logs and status changes.

Bookings start out ``Pending`` with no worker assigned; an
administrator later confirms them and assigns a worker through
:meth:`BookingService.update_status`, which is shared with signups,
workers and leads: the record id's prefix decides which collection is
touched.
"""

from __future__ import annotations

import asyncio
import logging

from citysetu_api.app.core.errors import RecordValidationError
from citysetu_api.app.core.repository import RecordRepository
from citysetu_api.app.core.store import Record
from citysetu_api.app.schemas.booking import CallLog, ChatCreate, StatusUpdate

logger = logging.getLogger(__name__)

# Collections whose records carry an admin-managed ``status``.
STATUS_COLLECTIONS = {"chats", "signups", "workers", "leads"}


class BookingService:
    """Service class for bookings and status updates."""

    def __init__(self, repository: RecordRepository) -> None:
        self.repository = repository

    async def create_booking(self, data: ChatCreate) -> Record:
        """Store a new booking with status ``Pending`` and no worker assigned."""
        fields = data.model_dump(exclude_none=True)
        fields.setdefault("preferredWorker", "")
        fields["status"] = "Pending"
        fields["workerAssigned"] = ""
        booking = await asyncio.to_thread(self.repository.append, "chats", fields)
        logger.info("New booking %s for %s", booking["id"], booking["service"])
        return booking

    async def log_call(self, data: CallLog) -> Record:
        return await asyncio.to_thread(
            self.repository.append, "calls", data.model_dump(exclude_none=True)
        )

    async def update_status(self, record_id: str, data: StatusUpdate) -> Record:
        """Apply a status/worker change to whichever collection owns ``record_id``."""
        collection = self.repository.collection_for_id(record_id)
        if collection not in STATUS_COLLECTIONS:
            raise RecordValidationError(f"Records like {record_id} have no status to update")
        patch = data.model_dump(exclude_none=True)
        return await asyncio.to_thread(
            self.repository.find_and_update, collection, record_id, patch
        )
