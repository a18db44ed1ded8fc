import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from api.main import create_fastapi_app
from core.settings import ChatSettings
from di.container import ApplicationContainer, InfrastructureContainer
from infra.resources import DatabaseResource


@pytest.fixture
def client(tmp_path):
    container = ApplicationContainer()
    container.infrastructure.database.override(
        providers.Object(
            DatabaseResource(
                f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", auto_create_schema=True
            )
        )
    )
    container.infrastructure.chat_settings.override(
        providers.Object(
            ChatSettings(POLL_TIMEOUT=0.5, POLL_CHECK_INTERVAL=100, MESSAGE_MAX_LENGTH=50)
        )
    )
    app = create_fastapi_app(container)
    with TestClient(app) as test_client:
        yield test_client
    container.unwire()


def as_user(user_id: int) -> dict:
    return {"X-User-Id": str(user_id)}


def create_direct(client: TestClient, user_id: int, other_id: int) -> dict:
    response = client.post(
        "/api/v1/conversations/",
        json={"type": "direct", "participants": [other_id]},
        headers=as_user(user_id),
    )
    assert response.status_code == 201
    return response.json()["data"]


def send(client: TestClient, user_id: int, conversation_id: int, body: str) -> dict:
    response = client.post(
        f"/api/v1/conversations/{conversation_id}/messages",
        json={"body": body},
        headers=as_user(user_id),
    )
    assert response.status_code == 201
    return response.json()["data"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_missing_identity_header_is_rejected(client):
    response = client.get("/api/v1/conversations/")

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"


def test_create_and_fetch_direct_conversation(client):
    created = create_direct(client, 1, 2)
    again = create_direct(client, 2, 1)

    assert created["type"] == "direct"
    assert again["id"] == created["id"]
    assert sorted(p["user_id"] for p in created["participants"]) == [1, 2]

    response = client.get(
        f"/api/v1/conversations/{created['id']}", headers=as_user(2)
    )
    assert response.status_code == 200
    assert response.json()["data"]["id"] == created["id"]


def test_invalid_conversation_type(client):
    response = client.post(
        "/api/v1/conversations/",
        json={"type": "channel", "participants": [2]},
        headers=as_user(1),
    )

    assert response.status_code == 422
    assert response.json()["message"] == 'Type must be either "direct" or "group"'


def test_non_member_is_forbidden(client):
    conversation = create_direct(client, 1, 2)

    fetched = client.get(
        f"/api/v1/conversations/{conversation['id']}", headers=as_user(3)
    )
    posted = client.post(
        f"/api/v1/conversations/{conversation['id']}/messages",
        json={"body": "let me in"},
        headers=as_user(3),
    )

    assert fetched.status_code == 403
    assert fetched.json()["error_code"] == "FORBIDDEN"
    assert posted.status_code == 403


def test_group_membership_changes(client):
    response = client.post(
        "/api/v1/conversations/",
        json={"type": "group", "participants": [2, 3], "title": "Team"},
        headers=as_user(1),
    )
    group = response.json()["data"]

    added = client.post(
        f"/api/v1/conversations/{group['id']}/participants",
        json={"user_id": 4},
        headers=as_user(1),
    )
    duplicate = client.post(
        f"/api/v1/conversations/{group['id']}/participants",
        json={"user_id": 4},
        headers=as_user(1),
    )
    removed = client.delete(
        f"/api/v1/conversations/{group['id']}/participants/4", headers=as_user(2)
    )

    assert response.status_code == 201
    assert group["title"] == "Team"
    assert added.status_code == 201
    assert added.json()["data"]["user_id"] == 4
    assert duplicate.status_code == 422
    assert removed.status_code == 204

    after = client.get(f"/api/v1/conversations/{group['id']}", headers=as_user(4))
    assert after.status_code == 403


def test_direct_membership_cannot_change(client):
    conversation = create_direct(client, 1, 2)

    response = client.post(
        f"/api/v1/conversations/{conversation['id']}/participants",
        json={"user_id": 3},
        headers=as_user(1),
    )

    assert response.status_code == 422
    assert response.json()["message"] == "Cannot add participants to direct conversations"


def test_message_history_and_listing(client):
    conversation = create_direct(client, 1, 2)
    first = send(client, 1, conversation["id"], "hello")
    second = send(client, 2, conversation["id"], "hi there")

    history = client.get(
        f"/api/v1/conversations/{conversation['id']}/messages", headers=as_user(1)
    )
    older = client.get(
        f"/api/v1/conversations/{conversation['id']}/messages",
        params={"before_message_id": second["id"]},
        headers=as_user(1),
    )
    listing = client.get("/api/v1/conversations/", headers=as_user(2))

    assert [m["id"] for m in history.json()["data"]["items"]] == [first["id"], second["id"]]
    assert [m["id"] for m in older.json()["data"]["items"]] == [first["id"]]
    items = listing.json()["data"]["items"]
    assert [c["id"] for c in items] == [conversation["id"]]
    assert items[0]["latest_message"]["id"] == second["id"]


def test_send_rejects_blank_body(client):
    conversation = create_direct(client, 1, 2)

    response = client.post(
        f"/api/v1/conversations/{conversation['id']}/messages",
        json={"body": "   "},
        headers=as_user(1),
    )

    assert response.status_code == 422
    assert response.json()["message"] == "Message body cannot be empty"


def test_mark_as_read_and_delete(client):
    conversation = create_direct(client, 1, 2)
    message = send(client, 1, conversation["id"], "read me")

    read = client.post(f"/api/v1/messages/{message['id']}/read", headers=as_user(2))
    read_again = client.post(f"/api/v1/messages/{message['id']}/read", headers=as_user(2))
    outsider = client.post(f"/api/v1/messages/{message['id']}/read", headers=as_user(3))
    not_sender = client.delete(f"/api/v1/messages/{message['id']}", headers=as_user(2))
    deleted = client.delete(f"/api/v1/messages/{message['id']}", headers=as_user(1))
    missing = client.post(f"/api/v1/messages/{message['id']}/read", headers=as_user(2))

    assert read.status_code == 204
    assert read_again.status_code == 204
    assert outsider.status_code == 403
    assert not_sender.status_code == 403
    assert deleted.status_code == 204
    assert missing.status_code == 404


def test_poll_delivers_new_messages(client):
    conversation = create_direct(client, 1, 2)
    message = send(client, 1, conversation["id"], "ping")

    response = client.get(
        "/api/v1/poll", params={"after_message_id": 0}, headers=as_user(2)
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["last_message_id"] == message["id"]
    assert [m["body"] for m in data["messages"]] == ["ping"]


def test_poll_times_out_with_no_content(client):
    conversation = create_direct(client, 1, 2)
    message = send(client, 1, conversation["id"], "seen already")

    response = client.get(
        "/api/v1/poll",
        params={"after_message_id": message["id"]},
        headers=as_user(2),
    )

    assert response.status_code == 204


def test_poll_ignores_conversations_the_user_left(client):
    group = client.post(
        "/api/v1/conversations/",
        json={"type": "group", "participants": [2, 3]},
        headers=as_user(1),
    ).json()["data"]
    client.delete(f"/api/v1/conversations/{group['id']}/participants/3", headers=as_user(1))
    send(client, 1, group["id"], "after you left")

    response = client.get(
        "/api/v1/poll", params={"after_message_id": 0}, headers=as_user(3)
    )

    assert response.status_code == 204


def test_infrastructure_exposes_only_what_services_use():
    assert set(InfrastructureContainer.providers) == {"chat_settings", "database"}
