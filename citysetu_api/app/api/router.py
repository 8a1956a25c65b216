"""
Top‑level API router.

Aggregates the domain routers under ``/api``.  Several routes are
exposed under two paths (``/chats`` and ``/log/chat``, ``/signups``
and ``/workers/signup``) because the website and the older chat widget
post to different URLs.
"""

from fastapi import APIRouter

from .endpoints import admin, bookings, chat, health, leads, workers

router = APIRouter()

router.include_router(health.router, tags=["health"])
router.include_router(bookings.router, tags=["bookings"])
router.include_router(workers.router, tags=["workers"])
router.include_router(leads.router, tags=["leads"])
router.include_router(chat.router, tags=["chat"])
router.include_router(admin.router, tags=["admin"])
