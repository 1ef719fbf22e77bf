"""
Lesson gate - decides whether a lesson's media is available
"""
from enum import Enum
from typing import Optional

from nokhba.models import LessonProgress
from nokhba.services.grading_service import PASS_STATUS


class GateState(str, Enum):
    LOCKED = "Locked"
    UNLOCKED = "Unlocked"


def gate_state(progress: Optional[LessonProgress]) -> GateState:
    """Unlocked iff a Pass has been recorded; the gate never writes"""
    if progress is not None and progress.status == PASS_STATUS:
        return GateState.UNLOCKED
    return GateState.LOCKED


def embed_url(youtube_id: str) -> str:
    return f"https://www.youtube.com/embed/{youtube_id}?rel=0&modestbranding=1"
