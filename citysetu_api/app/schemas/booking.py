"""
Pydantic models for chat bookings, call logs and status updates.

Bookings arrive from the customer chat widget; call logs from the
telephony integration.  Both accept extra fields, which are stored
alongside the known ones.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChatCreate(BaseModel):
    """Schema for a booking request made through the chat widget."""

    customerName: str = Field(..., min_length=1, examples=["Asha"])
    customerPhone: str = Field(..., min_length=1, examples=["9990001111"])
    service: str = Field(..., min_length=1, examples=["AC Repair"])
    preferredWorker: Optional[str] = Field(default=None, description="Worker the customer asked for, if any")

    model_config = ConfigDict(extra="allow")


class CallLog(BaseModel):
    """Free-form call metadata; every field is optional."""

    customerPhone: Optional[str] = None
    workerPhone: Optional[str] = None
    service: Optional[str] = None
    durationSeconds: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(extra="allow")


class StatusUpdate(BaseModel):
    """Admin change to a record's status and/or assigned worker.

    At least one of the two fields must be supplied.
    """

    status: Optional[str] = Field(default=None, min_length=1)
    workerAssigned: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_not_empty(self) -> "StatusUpdate":
        if self.status is None and self.workerAssigned is None:
            raise ValueError("Provide status or workerAssigned")
        return self
