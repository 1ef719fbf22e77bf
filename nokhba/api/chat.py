"""
AI assistant API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from nokhba.api.deps import get_current_session
from nokhba.database import get_db
from nokhba.schemas.chat import ChatHistoryResponse, ChatRequest, ChatResponse, ChatTurn
from nokhba.services.auth_service import UserSession
from nokhba.services.chat_service import chat_service

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = logging.getLogger(__name__)


# Plain def: the Gemini SDK call blocks, so FastAPI runs it in the threadpool
@router.post("/", response_model=ChatResponse)
def send_message(
    request: ChatRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """Ask the assistant; the conversation so far is remembered"""
    reply = chat_service.send_message(db, session, request.message)
    return ChatResponse(reply=reply)


@router.get("/", response_model=ChatHistoryResponse)
async def get_history(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    return ChatHistoryResponse(
        messages=[ChatTurn(**turn) for turn in chat_service.history(db, session)]
    )


@router.delete("/", status_code=204)
async def reset_chat(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """Start a fresh conversation"""
    chat_service.reset(db, session)
