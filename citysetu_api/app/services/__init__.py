"""
Service layer abstraction.

Each service encapsulates the business rules for one domain (bookings,
workers, signups, chat Q&A, admin views) and talks to storage only
through :class:`~citysetu_api.app.core.repository.RecordRepository`.
"""
