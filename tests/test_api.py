import pytest
from fastapi.testclient import TestClient

from main import create_app


def test_endpoints_require_authentication(client):
    assert client.get("/api/threads").status_code == 401
    assert client.get("/api/threads/1/messages").status_code == 401
    assert client.post("/api/threads", json={"message": "Hello"}).status_code == 401
    assert client.post("/api/threads/1/messages", json={"message": "Hello"}).status_code == 401
    assert client.delete("/api/threads/1").status_code == 401


def test_create_thread_with_hello(auth_client):
    response = auth_client.post("/api/threads", json={"message": "Hello"})

    assert response.status_code == 200
    body = response.json()
    assert body["thread"]["title"] == "Friendly Greeting"
    assert [(m["role"], m["content"]) for m in body["messages"]] == [
        ("user", "Hello"),
        ("assistant", "Hi there! How can I help?"),
    ]


@pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": "  "}])
def test_create_thread_requires_message(auth_client, payload):
    response = auth_client.post("/api/threads", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "Message is required"


def test_conversation_flow(auth_client, reply_model):
    reply_model.responses = ["reply one", "reply two"]
    thread_id = auth_client.post("/api/threads", json={"message": "one"}).json()["thread"]["id"]

    response = auth_client.post(f"/api/threads/{thread_id}/messages", json={"message": "two"})

    assert response.status_code == 200
    assert [(m["role"], m["content"]) for m in response.json()] == [("user", "two"), ("assistant", "reply two")]

    messages = auth_client.get(f"/api/threads/{thread_id}/messages").json()
    assert [m["content"] for m in messages] == ["one", "reply one", "two", "reply two"]
    assert reply_model.calls[-1] == [("human", "one"), ("ai", "reply one"), ("human", "two")]


def test_list_threads_newest_first(auth_client):
    first = auth_client.post("/api/threads", json={"message": "first"}).json()["thread"]["id"]
    second = auth_client.post("/api/threads", json={"message": "second"}).json()["thread"]["id"]

    threads = auth_client.get("/api/threads").json()

    assert [t["id"] for t in threads] == [second, first]


def test_delete_thread(auth_client):
    thread_id = auth_client.post("/api/threads", json={"message": "Hello"}).json()["thread"]["id"]

    response = auth_client.delete(f"/api/threads/{thread_id}")
    assert response.status_code == 200
    assert response.json() == {"success": True}

    assert auth_client.get(f"/api/threads/{thread_id}/messages").json() == []
    assert auth_client.get("/api/threads").json() == []
    assert auth_client.delete(f"/api/threads/{thread_id}").status_code == 200


def test_append_to_unknown_thread(auth_client):
    response = auth_client.post("/api/threads/999/messages", json={"message": "Hello"})
    assert response.status_code == 404


def test_threads_are_private(client):
    client.post("/api/register", json={"username": "alice", "password": "pw"})
    thread_id = client.post("/api/threads", json={"message": "secret"}).json()["thread"]["id"]
    client.post("/api/logout")
    client.post("/api/register", json={"username": "mallory", "password": "pw"})

    assert client.get("/api/threads").json() == []
    assert client.get(f"/api/threads/{thread_id}/messages").json() == []


def test_upstream_failure_is_a_generic_500(auth_client, reply_model):
    thread_id = auth_client.post("/api/threads", json={"message": "Hello"}).json()["thread"]["id"]
    reply_model.fail = True

    response = auth_client.post(f"/api/threads/{thread_id}/messages", json={"message": "again"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate response"
    assert "upstream unavailable" not in response.text
    # The whole turn was rolled back
    assert len(auth_client.get(f"/api/threads/{thread_id}/messages").json()) == 2


def test_upstream_failure_keeps_user_message_without_atomic_turns(settings, engine, completion, reply_model):
    settings.ATOMIC_TURNS = False
    app = create_app(settings=settings, engine=engine, completion_client=completion)

    with TestClient(app) as client:
        client.post("/api/register", json={"username": "alice", "password": "pw"})
        thread_id = client.post("/api/threads", json={"message": "Hello"}).json()["thread"]["id"]
        reply_model.fail = True

        response = client.post(f"/api/threads/{thread_id}/messages", json={"message": "again"})

        assert response.status_code == 500
        messages = client.get(f"/api/threads/{thread_id}/messages").json()
        assert [(m["role"], m["content"]) for m in messages][-1] == ("user", "again")


def test_title_failure_falls_back(auth_client, title_model):
    title_model.fail = True

    response = auth_client.post("/api/threads", json={"message": "Hello"})

    assert response.status_code == 200
    assert response.json()["thread"]["title"] == "New Chat"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    checks = client.get("/health/detailed").json()["checks"]
    assert checks["database"]["status"] == "healthy"
    assert checks["completion"]["status"] == "not_configured"


def test_health_reports_configured_api_key(settings, engine, completion):
    settings.OPENAI_API_KEY = "sk-test"
    app = create_app(settings=settings, engine=engine, completion_client=completion)

    with TestClient(app) as client:
        checks = client.get("/health/detailed").json()["checks"]

    assert checks["completion"] == {"status": "configured", "model": settings.OPENAI_MODEL}
