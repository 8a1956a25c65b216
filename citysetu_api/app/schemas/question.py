"""
Pydantic models for the chat widget's canned questions and answers.

Questions are never physically deleted through the admin routes;
deleting one clears its ``active`` flag so it disappears from the
widget while staying in the history.
"""

from typing import Optional

from pydantic import BaseModel, Field


class QuestionCreate(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class QuestionUpdate(BaseModel):
    """All fields are optional; only provided values are changed."""

    question: Optional[str] = Field(default=None, min_length=1)
    answer: Optional[str] = Field(default=None, min_length=1)
    active: Optional[bool] = None

