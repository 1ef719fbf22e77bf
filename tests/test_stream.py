import json
from datetime import datetime

import pytest
from fastapi import HTTPException

from conftest import ADMIN, STUDENT
from nokhba.api.stream import snapshot, sse_event, topic_for
from nokhba.models import LessonProgress


@pytest.mark.parametrize("channel, topic", [
    ("progress", f"progress:{STUDENT.user_id}"),
    ("wallet", f"wallet:{STUDENT.user_id}"),
    ("alerts", f"alerts:{STUDENT.user_id}"),
    ("lessons", "lessons"),
])
def test_student_topics(channel, topic):
    assert topic_for(channel, STUDENT) == topic


def test_codes_channel_is_admin_only():
    assert topic_for("codes", ADMIN) == "codes"
    with pytest.raises(HTTPException) as exc:
        topic_for("codes", STUDENT)
    assert exc.value.status_code == 403


def test_unknown_channel():
    with pytest.raises(HTTPException) as exc:
        topic_for("grades", STUDENT)
    assert exc.value.status_code == 404


def test_sse_event_keeps_arabic_text():
    event = sse_event({"message": "تم"}, event="change")

    assert event.startswith("event: change\ndata: ")
    assert event.endswith("\n\n")
    assert json.loads(event.split("data: ", 1)[1]) == {"message": "تم"}


def test_wallet_snapshot(db, student):
    student.wallet_balance = 250
    db.commit()

    assert snapshot(db, "wallet", STUDENT) == {"wallet_balance": 250}


def test_progress_snapshot(db, student, lesson):
    db.add(LessonProgress(
        user_id=student.id,
        lesson_id=lesson.id,
        status="Fail",
        score=1,
        total=4,
        timestamp=datetime(2026, 1, 10, 9, 0)
    ))
    db.commit()

    data = snapshot(db, "progress", STUDENT)

    assert data[lesson.id]["status"] == "Fail"
    assert data[lesson.id]["score"] == 1


def test_lessons_snapshot_is_gated(db, student, lesson):
    [card] = snapshot(db, "lessons", STUDENT)

    assert card["gate"] == "Locked"
    assert card["youtube_id"] is None
