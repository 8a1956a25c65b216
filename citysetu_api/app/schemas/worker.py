"""
Pydantic models for workers (service professionals) and their signups.

A signup is a worker's self-registration awaiting admin review; an
approved signup becomes a worker record.  Workers can also be created
directly by an administrator.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkerBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Ravi"])
    phone: str = Field(..., min_length=1, examples=["9876543210"])
    # A worker may offer one service or several; both forms are accepted.
    service: Optional[str] = Field(default=None, examples=["AC Repair"])
    services: Optional[List[str]] = Field(default=None, description="Names of all services offered")
    area: Optional[str] = Field(default=None, description="Locality the worker covers")

    model_config = ConfigDict(extra="allow")


class WorkerCreate(WorkerBase):
    """Schema for an administrator adding a worker directly."""

    status: str = Field(default="available", min_length=1)


class SignupCreate(WorkerBase):
    """Schema for a worker signing up through the public form."""

    experience: Optional[str] = None
