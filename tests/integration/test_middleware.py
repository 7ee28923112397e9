"""
Tests for HTTP middleware: rate limiting and metrics exposure.
"""
import pytest

from supportdesk.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        environment="testing",
        debug=True,
        store_type="in_memory",
        enable_telemetry=True,
        rate_limit_enabled=True,
        rate_limit_requests=2,
        rate_limit_period=60,
        dev_mock_ai=True,
        seed_sample_faqs=False,
        secret_key="test-secret-key",
        bcrypt_rounds=4,
    )


def test_rate_limit_rejects_excess_requests(client):
    first = client.get("/api/support/faqs")
    second = client.get("/api/support/faqs")
    third = client.get("/api/support/faqs")

    assert first.status_code == 200
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert second.headers["X-RateLimit-Remaining"] == "0"

    assert third.status_code == 429
    assert third.headers["Retry-After"] == "60"
    assert third.json()["code"] == "rate_limited"
    assert third.json()["request_id"]


def test_health_is_not_rate_limited(client):
    for _ in range(5):
        assert client.get("/health").status_code == 200


def test_clients_are_limited_separately(client):
    for _ in range(2):
        client.get("/api/support/faqs")

    response = client.get("/api/support/faqs", headers={"Authorization": "Bearer some-other-client"})

    assert response.status_code == 200


def test_metrics_endpoint(client):
    client.get("/health")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "supportdesk_" in response.text
