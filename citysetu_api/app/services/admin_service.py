"""
Service layer for the admin dashboard.

Dashboard views read several collections at once.  The reads touch
different documents and are independent, so they are issued
concurrently; the first failure aborts the whole view.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from citysetu_api.app.core.repository import COLLECTIONS, RecordRepository
from citysetu_api.app.core.store import Record
from citysetu_api.app.services.worker_service import PENDING_REVIEW, is_available

logger = logging.getLogger(__name__)


def newest_first(records: List[Record]) -> List[Record]:
    return sorted(records, key=lambda r: r.get("timestamp") or "", reverse=True)


class AdminService:
    """Aggregated reads and maintenance operations for administrators."""

    def __init__(self, repository: RecordRepository) -> None:
        self.repository = repository

    async def _read_all(self, names: Iterable[str]) -> Dict[str, List[Record]]:
        names = list(names)
        results = await asyncio.gather(
            *(asyncio.to_thread(self.repository.list, name) for name in names)
        )
        return dict(zip(names, results))

    async def dashboard_data(self) -> Dict[str, List[Record]]:
        """Every collection's records, newest first."""
        data = await self._read_all(COLLECTIONS)
        return {name: newest_first(records) for name, records in data.items()}

    async def stats(self) -> Dict[str, Any]:
        """Record counts per collection plus the numbers the dashboard highlights."""
        data = await self._read_all(COLLECTIONS)
        return {
            "totals": {name: len(records) for name, records in data.items()},
            "pending_chats": sum(1 for r in data["chats"] if r.get("status") == "Pending"),
            "pending_signups": sum(1 for r in data["signups"] if r.get("status") == PENDING_REVIEW),
            "available_workers": sum(1 for r in data["workers"] if is_available(r)),
        }

    async def backup_chats(self) -> Dict[str, Any]:
        """Copy the chat bookings to a dated file under ``backups/``.

        Running it twice on the same day overwrites that day's backup.
        """
        day = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        base = f"{self.repository.data_dir}/backups" if self.repository.data_dir else "backups"
        path = f"{base}/chats-{day}.json"
        count = await asyncio.to_thread(
            self.repository.snapshot, "chats", path, f"Backup chat bookings {day}"
        )
        return {"message": "Backup created", "path": path, "count": count}

    async def delete_record(self, record_id: str) -> bool:
        collection = self.repository.collection_for_id(record_id)
        removed = await asyncio.to_thread(self.repository.remove, collection, record_id)
        logger.info("Admin deleted %s from %s", record_id, collection)
        return removed
