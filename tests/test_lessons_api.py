"""
Lesson authoring and the gated student catalogue
"""
from datetime import datetime

import pytest

from conftest import ADMIN, GRADE, STUDY_TYPE, make_questions
from nokhba.api.deps import get_current_session
from nokhba.main import app
from nokhba.models import Lesson, LessonProgress
from nokhba.services.lesson_service import extract_youtube_id


def lesson_payload(**overrides):
    payload = {
        "title": "الفصل الثاني - الدرس الأول",
        "url": "https://youtu.be/dQw4w9WgXcQ",
        "duration": 15,
        "grade": GRADE,
        "study_type": STUDY_TYPE,
        "questions": make_questions([0, 3]),
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize("url, expected", [
    ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
    ("https://youtu.be/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
    ("https://www.youtube.com/embed/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
    ("https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
    ("https://www.youtube.com/watch?v=short", None),
    ("https://vimeo.com/123456", None),
])
def test_extract_youtube_id(url, expected):
    assert extract_youtube_id(url) == expected


def test_admin_creates_lesson(client, auth, db):
    auth.session = ADMIN

    response = client.post("/api/lessons/", json=lesson_payload())

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["youtube_id"] == "dQw4w9WgXcQ"
    assert data["duration"] == 15
    assert [q["correct_index"] for q in data["questions"]] == [0, 3]
    assert db.query(Lesson).count() == 1


def test_student_cannot_create_lesson(client, db):
    response = client.post("/api/lessons/", json=lesson_payload())

    assert response.status_code == 403
    assert db.query(Lesson).count() == 0


def test_bad_youtube_link_rejected(client, auth, db):
    auth.session = ADMIN

    response = client.post("/api/lessons/", json=lesson_payload(url="https://example.com/video"))

    assert response.status_code == 400
    assert response.json()["message"] == "رابط يوتيوب غير صحيح"
    assert db.query(Lesson).count() == 0


@pytest.mark.parametrize("question", [
    {"question": "س", "options": ["أ", "ب", "ج"], "correct_index": 0},
    {"question": "س", "options": ["أ", "ب", "ج", " "], "correct_index": 0},
    {"question": "س", "options": ["أ", "ب", "ج", "د"], "correct_index": 4},
    {"question": "  ", "options": ["أ", "ب", "ج", "د"], "correct_index": 0},
])
def test_malformed_question_rejected(client, auth, db, question):
    auth.session = ADMIN

    response = client.post("/api/lessons/", json=lesson_payload(questions=[question]))

    assert response.status_code == 422
    assert db.query(Lesson).count() == 0


def test_lesson_without_questions_rejected(client, auth):
    auth.session = ADMIN

    assert client.post("/api/lessons/", json=lesson_payload(questions=[])).status_code == 422


def test_unknown_grade_rejected(client, auth):
    auth.session = ADMIN

    response = client.post("/api/lessons/", json=lesson_payload(grade="الصف السادس"))

    assert response.status_code == 400
    assert response.json()["error"] == "InvalidLesson"


def test_catalogue_filtered_by_grade_and_study_type(client, student, lesson_factory):
    mine = lesson_factory(title="درسي")
    lesson_factory(title="اونلاين", study_type="اونلاين")
    lesson_factory(title="صف آخر", grade="الصف الثالث الثانوي")

    cards = client.get("/api/lessons/").json()

    assert [card["id"] for card in cards] == [mine.id]
    assert cards[0]["gate"] == "Locked"
    assert cards[0]["question_count"] == 4
    assert cards[0]["youtube_id"] is None


def test_catalogue_newest_first(client, student, lesson_factory):
    older = lesson_factory(title="قديم", created_at=datetime(2026, 1, 1))
    newer = lesson_factory(title="جديد", created_at=datetime(2026, 1, 5))

    cards = client.get("/api/lessons/").json()

    assert [card["id"] for card in cards] == [newer.id, older.id]


def test_catalogue_without_profile_lists_everything(client, lesson_factory):
    lesson_factory(title="أ")
    lesson_factory(title="ب", study_type="اونلاين")

    assert len(client.get("/api/lessons/").json()) == 2


def test_catalogue_shows_media_for_passed_lessons(client, student, lesson, db):
    db.add(LessonProgress(
        user_id=student.id,
        lesson_id=lesson.id,
        status="Pass",
        score=3,
        total=4,
        timestamp=datetime(2026, 1, 10, 9, 5)
    ))
    db.commit()

    [card] = client.get("/api/lessons/").json()

    assert card["gate"] == "Unlocked"
    assert card["youtube_id"] == "dQw4w9WgXcQ"
    assert card["embed_url"].startswith("https://www.youtube.com/embed/dQw4w9WgXcQ")
    assert card["progress"]["score"] == 3


def test_admin_listing_includes_answer_keys(client, auth, lesson):
    auth.session = ADMIN

    [data] = client.get("/api/lessons/all").json()

    assert [q["correct_index"] for q in data["questions"]] == [1, 0, 2, 3]


def test_unknown_lesson_404(client):
    response = client.get("/api/lessons/missing")

    assert response.status_code == 404
    assert response.json()["error"] == "LessonNotFound"


def test_missing_token_rejected(client):
    app.dependency_overrides.pop(get_current_session, None)

    response = client.get("/api/lessons/")

    assert response.status_code == 401
