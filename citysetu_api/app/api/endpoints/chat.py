"""
Chat widget endpoints.

The customer-facing routes (start a session, list questions, fetch an
answer) are public.  The ``/admin/chat`` routes manage the question
list and require the admin token; deleting a question deactivates it.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from citysetu_api.app.api.deps import get_chat_service
from citysetu_api.app.core.security import require_admin
from citysetu_api.app.schemas.question import QuestionCreate, QuestionUpdate
from citysetu_api.app.services.chat_service import ChatService

router = APIRouter()


@router.post("/chat/start")
async def start_chat(service: ChatService = Depends(get_chat_service)) -> Dict[str, str]:
    return {"chatId": await service.start_session()}


@router.get("/chat/questions")
async def list_questions(service: ChatService = Depends(get_chat_service)) -> Dict[str, Any]:
    return {"questions": await service.active_questions()}


@router.get("/chat/answer/{question_id}")
async def get_answer(question_id: str, service: ChatService = Depends(get_chat_service)) -> Dict[str, str]:
    """Answer to an active question; 404 when missing or deactivated."""
    return {"answer": await service.answer(question_id)}


@router.post("/admin/chat/questions", status_code=status.HTTP_201_CREATED)
async def add_question(
    question: QuestionCreate,
    service: ChatService = Depends(get_chat_service),
    _admin: str = Depends(require_admin),
) -> Dict[str, Any]:
    return {"qa": await service.add_question(question)}


@router.put("/admin/chat/{question_id}")
async def update_question(
    question_id: str,
    question: QuestionUpdate,
    service: ChatService = Depends(get_chat_service),
    _admin: str = Depends(require_admin),
) -> Dict[str, Any]:
    return {"qa": await service.update_question(question_id, question)}


@router.delete("/admin/chat/question/{question_id}")
async def delete_question(
    question_id: str,
    service: ChatService = Depends(get_chat_service),
    _admin: str = Depends(require_admin),
) -> Dict[str, str]:
    await service.deactivate_question(question_id)
    return {"message": "Deleted"}
