"""
Shared fixtures: in-memory database, authenticated client, fake clock
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GEMINI_API_KEY"] = "test-key"
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"  # unreachable, caching disabled
os.environ["QUIZ_AUTO_SUBMIT"] = "false"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "100000"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from nokhba.api.deps import get_current_session
from nokhba.database import Base, SessionLocal, engine
from nokhba.main import app
from nokhba.models import Lesson, Student
from nokhba.services.auth_service import UserSession
from nokhba.services.guardian_notifier import guardian_notifier
from nokhba.services.quiz_service import quiz_service
from nokhba.utils.rate_limiter import rate_limiter, redeem_limiter

STUDENT = UserSession(user_id="student-1", email="student@nokhba.test")
OTHER_STUDENT = UserSession(user_id="student-2", email="other@nokhba.test")
ADMIN = UserSession(user_id="admin-1", email="admin@nokhba.test", is_admin=True)

GRADE = "الصف الأول الثانوي"
STUDY_TYPE = "سنتر"


class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 1, 10, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class AuthState:
    def __init__(self):
        self.session = STUDENT

    def __call__(self) -> UserSession:
        return self.session


def make_questions(correct_indices):
    return [
        {
            "question": f"السؤال {i + 1}",
            "options": ["أ", "ب", "ج", "د"],
            "correct_index": correct,
        }
        for i, correct in enumerate(correct_indices)
    ]


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    redeem_limiter.reset()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(quiz_service, "clock", fake)
    return fake


@pytest.fixture
def alerts(monkeypatch):
    """Captures guardian hand-offs instead of publishing them"""
    sent = []
    monkeypatch.setattr(guardian_notifier, "launcher", lambda user_id, phone, url: sent.append((user_id, phone, url)))
    return sent


@pytest.fixture
def auth():
    state = AuthState()
    app.dependency_overrides[get_current_session] = state
    yield state
    app.dependency_overrides.pop(get_current_session, None)


@pytest.fixture
def client(auth):
    return TestClient(app)


@pytest.fixture
def student(db):
    profile = Student(
        id=STUDENT.user_id,
        name="أحمد محمد",
        email=STUDENT.email,
        parent_phone="01222652380",
        grade=GRADE,
        study_type=STUDY_TYPE,
        wallet_balance=0,
    )
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def lesson_factory(db):
    def create(correct_indices=(1, 0, 2, 3), duration=10, title="الفصل الأول - الدرس الأول",
               grade=GRADE, study_type=STUDY_TYPE, created_at=None):
        lesson = Lesson(
            title=title,
            url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            youtube_id="dQw4w9WgXcQ",
            duration=duration,
            grade=grade,
            study_type=study_type,
            questions=make_questions(correct_indices),
        )
        if created_at is not None:
            lesson.created_at = created_at
        db.add(lesson)
        db.commit()
        db.refresh(lesson)
        return lesson

    return create


@pytest.fixture
def lesson(lesson_factory):
    return lesson_factory()
