"""Liveness endpoint; needs no authentication and touches no storage."""

import time
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    uptime = time.monotonic() - request.app.state.started_at
    return {"status": "ok", "uptime_seconds": int(uptime)}
