"""Service layer for landing-page leads."""

from __future__ import annotations

import asyncio

from citysetu_api.app.core.repository import RecordRepository
from citysetu_api.app.core.store import Record
from citysetu_api.app.schemas.lead import LeadCreate


class LeadService:
    def __init__(self, repository: RecordRepository) -> None:
        self.repository = repository

    async def create_lead(self, data: LeadCreate) -> Record:
        fields = data.model_dump(exclude_none=True)
        fields["status"] = "New"
        return await asyncio.to_thread(self.repository.append, "leads", fields)
