import pytest
from fastapi.testclient import TestClient

from confbot.api.routes.events import get_session_store
from confbot.core.database import get_db
from confbot.main import app
from confbot.services.broadcaster import ConferenceBroadcaster, get_broadcaster
from confbot.services.questions import approve_question, submit_question
from confbot.services.slides import set_slide


@pytest.fixture
def client(db, sessions):
    broadcaster = ConferenceBroadcaster()
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_session_store] = lambda: sessions
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    yield TestClient(app)
    app.dependency_overrides.clear()


def event(kind, value, identity="2001"):
    return {"user": {"identity": identity, "first_name": "Ann"}, "kind": kind, "value": value}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_start_command(client):
    response = client.post("/api/events", json=event("command", "/start"))
    assert response.status_code == 200
    body = response.json()
    assert "Welcome" in body["text"]
    actions = [b["action"] for row in body["buttons"] for b in row]
    assert "menu:join" in actions


def test_join_through_events(client, conference):
    client.post("/api/events", json=event("action", "menu:join"))
    body = client.post("/api/events", json=event("text", conference.code.lower())).json()
    assert "You joined" in body["text"]


def test_invalid_event_kind(client):
    response = client.post("/api/events", json=event("sticker", "x"))
    assert response.status_code == 422


def test_viewer_snapshot(client, db, main_admin, conference):
    set_slide(db, main_admin, conference.code, "https://slides.example.com/1", "Intro")
    question = submit_question(db, main_admin, conference.code, "Is the keynote recorded?")
    approve_question(db, main_admin, conference.code, question.id)
    submit_question(db, main_admin, conference.code, "Still waiting for moderation")

    response = client.get(f"/api/viewer/{conference.code}", params={"key": "viewer-key"})
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "DevCon 2026"
    assert body["slide"] == {"url": "https://slides.example.com/1", "title": "Intro"}
    assert body["questions"] == [{"id": question.id, "text": "Is the keynote recorded?", "hasTarget": False}]


def test_viewer_requires_key(client, conference):
    response = client.get(f"/api/viewer/{conference.code}", params={"key": "wrong"})
    assert response.status_code == 403
    assert response.json()["detail"] == "ACCESS_DENIED"
    assert client.get(f"/api/viewer/{conference.code}/stream").status_code == 403


def test_viewer_unknown_conference(client):
    response = client.get("/api/viewer/NOPE99", params={"key": "viewer-key"})
    assert response.status_code == 404
    assert response.json()["detail"] == "CONFERENCE_NOT_FOUND"
