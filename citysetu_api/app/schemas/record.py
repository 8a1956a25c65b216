"""
Schema for stored records.

Records are open JSON objects: each kind has a few well-known fields,
but anything a client sent is kept and returned unchanged.  Only
``id`` and ``timestamp`` are guaranteed to be present.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class RecordRead(BaseModel):
    """A record as stored in its collection, unknown fields included."""

    id: str
    timestamp: Optional[str] = None

    model_config = ConfigDict(extra="allow")
