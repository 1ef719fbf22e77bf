"""
Gemini AI assistant for students
"""
import google.generativeai as genai
from nokhba.config import settings
import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from nokhba.models import ChatMessage
from nokhba.services.auth_service import UserSession
from nokhba.services.exceptions import EmptyMessage

logger = logging.getLogger(__name__)

# Configure Gemini API
genai.configure(api_key=settings.GEMINI_API_KEY)

GREETING = "أهلاً بك! أنا المساعد الذكي الخاص بالمنصة. كيف يمكنني مساعدتك في المنهج اليوم؟"
EMPTY_REPLY = "عذراً، لم أتمكن من فهم ذلك."
ERROR_REPLY = "حدث خطأ في الاتصال. يرجى المحاولة لاحقاً."


def _default_model_factory():
    return genai.GenerativeModel(
        settings.CHAT_MODEL,
        system_instruction=settings.CHAT_SYSTEM_INSTRUCTION
    )


class ChatService:
    """
    Conversational assistant with per-student memory

    The conversation is persisted as ChatMessage rows and replayed as the
    chat history on every turn, so the session survives restarts.
    """

    def __init__(self, model_factory: Optional[Callable[[], Any]] = None):
        self.model_factory = model_factory or _default_model_factory
        self._model = None

    @property
    def model(self):
        if self._model is None:
            self._model = self.model_factory()
        return self._model

    def _stored_turns(self, db: Session, user_id: str, limit: Optional[int] = None) -> List[ChatMessage]:
        query = db.query(ChatMessage).filter(ChatMessage.user_id == user_id).order_by(ChatMessage.id.desc())
        if limit:
            query = query.limit(limit)
        return list(reversed(query.all()))

    def history(self, db: Session, session: UserSession) -> List[Dict[str, str]]:
        """Conversation for display, greeting first"""
        turns = [{"role": "model", "text": GREETING}]
        turns.extend(
            {"role": turn.role, "text": turn.text}
            for turn in self._stored_turns(db, session.user_id)
        )
        return turns

    def _sdk_history(self, turns: List[ChatMessage]) -> List[Dict[str, Any]]:
        """SDK history must alternate user/model and start with a user turn"""
        history = [{"role": turn.role, "parts": [turn.text]} for turn in turns]
        while history and history[0]["role"] != "user":
            history.pop(0)
        return history

    def send_message(self, db: Session, session: UserSession, message: str) -> str:
        """
        Send a student message and return the assistant reply

        Failures are answered with an apology and nothing is stored.
        """
        text = message.strip()
        if not text:
            raise EmptyMessage()

        turns = self._stored_turns(db, session.user_id, settings.CHAT_HISTORY_LIMIT)

        try:
            chat = self.model.start_chat(history=self._sdk_history(turns))
            response = chat.send_message(text)
            reply = (getattr(response, "text", "") or "").strip()
        except Exception as e:
            logger.error(f"Gemini chat failed for user {session.user_id}: {str(e)}")
            return ERROR_REPLY

        if not reply:
            logger.warning(f"Gemini returned an empty reply for user {session.user_id}")
            reply = EMPTY_REPLY

        db.add(ChatMessage(user_id=session.user_id, role="user", text=text))
        db.add(ChatMessage(user_id=session.user_id, role="model", text=reply))
        db.commit()

        return reply

    def reset(self, db: Session, session: UserSession) -> int:
        """Forget the conversation; returns the number of messages removed"""
        removed = db.query(ChatMessage).filter(ChatMessage.user_id == session.user_id).delete()
        db.commit()
        logger.info(f"Chat history cleared for user {session.user_id} ({removed} messages)")
        return removed


# Global instance
chat_service = ChatService()
