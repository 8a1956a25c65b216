"""
Service layer for the chat widget: sessions and canned Q&A.

The widget opens a session, shows the active questions and fetches the
answer to whichever one the customer taps.  Administrators maintain
the question list; removing a question only deactivates it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List

from citysetu_api.app.core.errors import NotFoundError
from citysetu_api.app.core.repository import RecordRepository
from citysetu_api.app.core.store import Record
from citysetu_api.app.schemas.question import QuestionCreate, QuestionUpdate

logger = logging.getLogger(__name__)


def _is_active(question: Record) -> bool:
    return question.get("active", True) is not False


class ChatService:
    def __init__(self, repository: RecordRepository) -> None:
        self.repository = repository

    async def start_session(self) -> str:
        session = await asyncio.to_thread(self.repository.append, "chat_sessions", {})
        return session["id"]

    async def active_questions(self) -> List[Record]:
        """Active questions in the order they were added, without answers."""
        questions = await asyncio.to_thread(self.repository.list, "chat_questions", _is_active)
        return [{"id": q["id"], "question": q.get("question", "")} for q in questions]

    async def answer(self, question_id: str) -> str:
        question = await asyncio.to_thread(self.repository.find, "chat_questions", question_id)
        if not _is_active(question):
            raise NotFoundError("Answer not found")
        return question.get("answer", "")

    async def add_question(self, data: QuestionCreate) -> Record:
        fields = data.model_dump()
        fields["active"] = True
        return await asyncio.to_thread(self.repository.append, "chat_questions", fields)

    async def update_question(self, question_id: str, data: QuestionUpdate) -> Record:
        return await asyncio.to_thread(
            self.repository.find_and_update,
            "chat_questions",
            question_id,
            data.model_dump(exclude_none=True),
        )

    async def deactivate_question(self, question_id: str) -> Record:
        question = await asyncio.to_thread(
            self.repository.find_and_update, "chat_questions", question_id, {"active": False}
        )
        logger.info("Deactivated chat question %s", question_id)
        return question
