"""
End-to-end tests over the HTTP API.

The app runs against the in-memory store with sample FAQs seeded and a
bootstrap admin; the completion provider is the shared test double.
"""
import pytest

from supportdesk.config import Settings
from supportdesk.services import REDIRECT_MESSAGE
from supportdesk.store.repositories import SESSIONS

from conftest import DEFAULT_REPLY, STORE_ERROR_TEXT

API = "/api"
ADMIN_EMAIL = "root@example.com"
ADMIN_PASSWORD = "rootpass"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        environment="testing",
        debug=True,
        store_type="in_memory",
        enable_telemetry=False,
        rate_limit_enabled=False,
        dev_mock_ai=True,
        seed_sample_faqs=True,
        secret_key="test-secret-key",
        bcrypt_rounds=4,
        bootstrap_admin_email=ADMIN_EMAIL,
        bootstrap_admin_password=ADMIN_PASSWORD,
        bootstrap_admin_name="Root Admin",
    )


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _login(client, email: str, password: str) -> str:
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


@pytest.fixture
def admin_token(client) -> str:
    return _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def agent_token(client, admin_token) -> str:
    response = client.post(
        f"{API}/admin/users",
        json={
            "name": "Sam Agent",
            "email": "sam@example.com",
            "password": "agentpass",
            "role": "support_agent",
        },
        headers=_auth(admin_token),
    )
    assert response.status_code == 201, response.text
    return _login(client, "sam@example.com", "agentpass")


@pytest.fixture
def customer_token(client) -> str:
    response = client.post(
        f"{API}/auth/register",
        json={"name": "Carl Customer", "email": "carl@example.com", "password": "custpass"},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["token"]


def _new_session(client) -> str:
    response = client.post(f"{API}/support/sessions")
    assert response.status_code == 200
    return response.json()["data"]["session_id"]


def _send(client, session_id: str, message: str, headers=None):
    return client.post(
        f"{API}/support/messages",
        json={"session_id": session_id, "message": message},
        headers=headers or {},
    )


# ===========================
# Health
# ===========================

def test_health_endpoints(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/health/live").json()["status"] == "alive"

    ready = client.get("/health/ready")
    assert ready.status_code == 200
    body = ready.json()
    assert body["services"]["store"] == "healthy"
    assert body["services"]["completion_provider"] == "fake"
    assert body["services"]["faq_catalog"] == "4"


def test_responses_carry_request_id(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-Process-Time" in response.headers


# ===========================
# Customer flow
# ===========================

def test_create_session_does_not_persist(client, services):
    session_id = _new_session(client)

    response = client.get(f"{API}/support/sessions/{session_id}")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_faq_answer(client, fake_provider):
    session_id = _new_session(client)

    response = _send(client, session_id, "How do I reset my password?")

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "faq"
    assert body["status"] == "active"
    assert body["needs_escalation"] is False
    fake_provider.generate.assert_not_called()


def test_ai_answer_and_transcript(client):
    session_id = _new_session(client)

    body = _send(client, session_id, "I need a refund for a damaged blender").json()

    assert body["response"] == DEFAULT_REPLY
    assert body["source"] == "ai"

    transcript = client.get(f"{API}/support/sessions/{session_id}").json()["data"]["session"]
    assert transcript["title"] == "I need a refund for a damaged blender"
    assert [m["role"] for m in transcript["conversation"]] == ["system", "user", "assistant"]


def test_off_topic_redirect(client):
    session_id = _new_session(client)

    body = _send(client, session_id, "what's 2+2").json()

    assert body["response"] == REDIRECT_MESSAGE
    assert body["source"] == "system"
    assert client.get(f"{API}/support/sessions/{session_id}").status_code == 404


@pytest.mark.parametrize("payload", [
    {"message": "help with my order"},
    {"session_id": "abc"},
    {"session_id": "abc", "message": "   "},
])
def test_missing_fields_are_rejected(client, payload):
    response = client.post(f"{API}/support/messages", json=payload)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["code"] == "invalid_request"


def test_faq_listing(client):
    faqs = client.get(f"{API}/support/faqs").json()["data"]["faqs"]

    assert [f["category"] for f in faqs] == ["Account", "Billing", "General", "Orders"]


def test_history_belongs_to_caller(client, customer_token, admin_token):
    session_id = _new_session(client)
    _send(client, session_id, "Where is my order?", headers=_auth(customer_token))

    history = client.get(f"{API}/support/history", headers=_auth(customer_token)).json()["data"]
    assert [s["session_id"] for s in history["sessions"]] == [session_id]
    assert history["pagination"]["total"] == 1

    own = client.get(f"{API}/support/history/{session_id}", headers=_auth(customer_token))
    assert own.status_code == 200
    other = client.get(f"{API}/support/history/{session_id}", headers=_auth(admin_token))
    assert other.status_code == 404


def test_storage_outage_returns_generic_error(client, store):
    session_id = _new_session(client)
    store.failing_writes.add(SESSIONS)

    response = _send(client, session_id, "I need a refund for a damaged blender")

    assert response.status_code == 503
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Service temporarily unavailable. Please try again later."
    assert body["code"] == "persistence_failure"
    assert STORE_ERROR_TEXT not in response.text

    store.failing_writes.clear()
    assert client.get(f"{API}/support/sessions/{session_id}").status_code == 404


# ===========================
# Escalation round trip
# ===========================

def test_escalation_handled_by_agent(client, admin_token, agent_token, customer_token):
    session_id = _new_session(client)

    turn = _send(
        client, session_id, "I want to speak to a manager right now",
        headers=_auth(customer_token),
    ).json()
    assert turn["needs_escalation"] is True
    assert turn["status"] == "escalated"
    assert turn["priority"] == "high"
    escalation_id = turn["escalation_id"]

    listing = client.get(
        f"{API}/admin/escalations",
        params={"status": "pending"},
        headers=_auth(agent_token),
    ).json()["data"]
    assert [e["id"] for e in listing["escalations"]] == [escalation_id]

    profile = client.get(f"{API}/auth/profile", headers=_auth(agent_token)).json()["data"]["user"]
    assign = client.post(
        f"{API}/admin/escalations/{escalation_id}/assign",
        json={"handler_id": profile["id"]},
        headers=_auth(admin_token),
    )
    assert assign.status_code == 200
    assert assign.json()["data"]["escalation"]["status"] == "in_progress"

    reply = client.post(
        f"{API}/admin/sessions/{session_id}/messages",
        json={"message": "I'm on it"},
        headers=_auth(agent_token),
    ).json()["data"]
    assert reply["message"]["content"] == "[Admin Sam Agent]: I'm on it"
    assert reply["status"] == "escalated"

    resolved = client.post(
        f"{API}/admin/escalations/{escalation_id}/resolve",
        json={"notes": "Refund issued"},
        headers=_auth(agent_token),
    )
    assert resolved.json()["data"]["escalation"]["status"] == "resolved"

    detail = client.get(
        f"{API}/admin/escalations/{escalation_id}",
        headers=_auth(agent_token),
    ).json()["data"]
    assert detail["customer"]["email"] == "carl@example.com"
    assert detail["assigned_handler"]["name"] == "Sam Agent"
    assert "password_hash" not in detail["customer"]
    assert detail["escalation"]["notes"][-1]["author_name"] == "Sam Agent"
    assert detail["conversation"][-1]["source"] == "admin"

    blocked = _send(client, session_id, "One more thing about my order", headers=_auth(customer_token))
    assert blocked.status_code == 409
    assert blocked.json()["code"] == "session_resolved"


def test_dashboard_stats(client, agent_token):
    _send(client, _new_session(client), "Emergency, my refund bounced")

    stats = client.get(f"{API}/admin/dashboard/stats", headers=_auth(agent_token)).json()["data"]

    assert stats["escalations"]["pending"] == 1
    assert stats["sessions"]["escalated"] == 1
    assert stats["users"]["handlers"] == 2


# ===========================
# Authorization
# ===========================

def test_admin_routes_require_authentication(client):
    response = client.get(f"{API}/admin/escalations")

    assert response.status_code == 401
    assert response.json()["code"] == "unauthorized"


def test_customers_cannot_use_admin_routes(client, customer_token):
    response = client.get(f"{API}/admin/escalations", headers=_auth(customer_token))

    assert response.status_code == 403


def test_agents_cannot_manage_users(client, agent_token):
    assert client.get(f"{API}/admin/users", headers=_auth(agent_token)).status_code == 403


def test_self_registration_cannot_create_admin(client):
    response = client.post(
        f"{API}/auth/register",
        json={"name": "Mallory", "email": "mallory@example.com", "password": "secret1", "role": "admin"},
    )

    assert response.status_code == 403


def test_invalid_token_is_rejected(client):
    response = client.get(f"{API}/auth/profile", headers=_auth("not-a-token"))

    assert response.status_code == 401


def test_wrong_password(client):
    response = client.post(f"{API}/auth/login", json={"email": ADMIN_EMAIL, "password": "nope"})

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_deactivated_user_loses_access(client, admin_token, customer_token):
    profile = client.get(f"{API}/auth/profile", headers=_auth(customer_token)).json()["data"]["user"]

    response = client.put(
        f"{API}/admin/users/{profile['id']}",
        json={"is_active": False},
        headers=_auth(admin_token),
    )
    assert response.status_code == 200

    assert client.get(f"{API}/auth/profile", headers=_auth(customer_token)).status_code == 401
