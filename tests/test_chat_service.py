import pytest

from conftest import OTHER_STUDENT, STUDENT
from nokhba.services.chat_service import ERROR_REPLY, EMPTY_REPLY, GREETING, ChatService
from nokhba.services.exceptions import EmptyMessage


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeChat:
    def __init__(self, model, history):
        self.model = model
        self.history = history

    def send_message(self, text):
        self.model.sent.append((self.history, text))
        if isinstance(self.model.reply, Exception):
            raise self.model.reply
        return FakeResponse(self.model.reply)


class FakeModel:
    def __init__(self, reply="الإجابة هي ٤"):
        self.reply = reply
        self.sent = []

    def start_chat(self, history):
        return FakeChat(self, history)


@pytest.fixture
def model():
    return FakeModel()


@pytest.fixture
def service(model):
    return ChatService(model_factory=lambda: model)


def test_history_starts_with_greeting(db, service):
    assert service.history(db, STUDENT) == [{"role": "model", "text": GREETING}]


def test_conversation_is_remembered(db, service, model):
    service.send_message(db, STUDENT, "ما هو ٢ + ٢؟")
    model.reply = "بالتأكيد"
    reply = service.send_message(db, STUDENT, "  هل أنت متأكد؟ ")

    assert reply == "بالتأكيد"
    history, text = model.sent[-1]
    assert text == "هل أنت متأكد؟"
    assert history == [
        {"role": "user", "parts": ["ما هو ٢ + ٢؟"]},
        {"role": "model", "parts": ["الإجابة هي ٤"]},
    ]
    assert [turn["role"] for turn in service.history(db, STUDENT)] == ["model", "user", "model", "user", "model"]


def test_conversations_are_per_student(db, service):
    service.send_message(db, STUDENT, "سؤال")

    assert len(service.history(db, OTHER_STUDENT)) == 1


def test_failure_returns_apology_and_stores_nothing(db, service, model):
    model.reply = RuntimeError("quota exceeded")

    assert service.send_message(db, STUDENT, "سؤال") == ERROR_REPLY
    assert len(service.history(db, STUDENT)) == 1


def test_empty_reply_replaced(db, service, model):
    model.reply = "   "

    assert service.send_message(db, STUDENT, "سؤال") == EMPTY_REPLY


def test_blank_message_rejected(db, service, model):
    with pytest.raises(EmptyMessage):
        service.send_message(db, STUDENT, "   ")
    assert model.sent == []


def test_reset_forgets_conversation(db, service):
    service.send_message(db, STUDENT, "سؤال")

    assert service.reset(db, STUDENT) == 2
    assert len(service.history(db, STUDENT)) == 1


def test_chat_endpoints(client, monkeypatch, model):
    from nokhba.services.chat_service import chat_service

    monkeypatch.setattr(chat_service, "_model", model)

    response = client.post("/api/chat/", json={"message": "اشرح الدرس"})
    assert response.json() == {"reply": "الإجابة هي ٤"}

    messages = client.get("/api/chat/").json()["messages"]
    assert [m["role"] for m in messages] == ["model", "user", "model"]

    assert client.delete("/api/chat/").status_code == 204
    assert len(client.get("/api/chat/").json()["messages"]) == 1

    blank = client.post("/api/chat/", json={"message": "   "})
    assert blank.status_code == 400
