"""
Pytest configuration and shared fixtures for testing.
Provides settings overrides, an in-memory store, a fake completion provider
and a wired application.
"""
import os
from typing import Any, Dict, Optional, Set
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set testing environment before importing the application
os.environ["ENVIRONMENT"] = "testing"
os.environ["STORE_TYPE"] = "in_memory"
os.environ["ENABLE_TELEMETRY"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DEV_MOCK_AI"] = "true"
os.environ["SEED_SAMPLE_FAQS"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

from supportdesk.agents import AdminActionHandler, ConversationOrchestrator, EscalationWorkflow
from supportdesk.config import Settings
from supportdesk.container import ServiceContainer
from supportdesk.models import User, UserRole
from supportdesk.services import (
    AuthService,
    CompletionProvider,
    EscalationDetector,
    FAQMatcher,
    UserService,
)
from supportdesk.store import InMemoryDocumentStore, Repositories, SessionLockRegistry, StoreError

DEFAULT_REPLY = "Thanks for reaching out. Let me look into that for you."
DEFAULT_SUMMARY = "Customer asked for a manager about a delayed refund."
STORE_ERROR_TEXT = "connection refused by store-01:6379"


# ===========================
# Settings Fixtures
# ===========================

@pytest.fixture
def test_settings() -> Settings:
    """
    Create test settings instance.
    Override default settings for testing environment.
    """
    return Settings(
        environment="testing",
        debug=True,
        store_type="in_memory",
        enable_telemetry=False,
        rate_limit_enabled=False,
        dev_mock_ai=True,
        seed_sample_faqs=False,
        secret_key="test-secret-key",
        bcrypt_rounds=4,
    )


@pytest.fixture
def settings_override(test_settings: Settings, monkeypatch):
    """
    Override settings for individual tests.
    Usage: settings_override({"seed_sample_faqs": True})
    """
    def _override(overrides: Dict[str, Any]) -> Settings:
        for key, value in overrides.items():
            monkeypatch.setattr(test_settings, key, value)
        return test_settings

    return _override


# ===========================
# Store Fixtures
# ===========================

class FlakyDocumentStore(InMemoryDocumentStore):
    """
    In-memory store that raises StoreError on demand.

    Writes fail for collections listed in ``failing_writes``; every read
    fails while ``failing_reads`` is set.
    """

    def __init__(self):
        super().__init__()
        self.failing_writes: Set[str] = set()
        self.failing_reads = False

    def _check_write(self, collection: str) -> None:
        if collection in self.failing_writes:
            raise StoreError(STORE_ERROR_TEXT)

    async def get(self, collection: str, doc_id: str) -> Optional[dict]:
        if self.failing_reads:
            raise StoreError(STORE_ERROR_TEXT)
        return await super().get(collection, doc_id)

    async def insert(self, collection: str, doc_id: str, document: dict) -> bool:
        self._check_write(collection)
        return await super().insert(collection, doc_id, document)

    async def update(self, collection: str, doc_id: str, set_fields=None, push=None) -> Optional[dict]:
        self._check_write(collection)
        return await super().update(collection, doc_id, set_fields=set_fields, push=push)


@pytest.fixture
def store() -> FlakyDocumentStore:
    return FlakyDocumentStore()


@pytest.fixture
def repos(store) -> Repositories:
    return Repositories(store)


# ===========================
# Provider Fixtures
# ===========================

@pytest.fixture
def fake_provider():
    """
    Completion provider double.

    ``generate`` and ``summarize`` are AsyncMocks so tests can assert calls
    and swap in side effects.
    """
    provider = MagicMock(spec=CompletionProvider)
    provider.name = "fake"
    provider.generate = AsyncMock(return_value=DEFAULT_REPLY)
    provider.summarize = AsyncMock(return_value=DEFAULT_SUMMARY)
    provider.aclose = AsyncMock()
    return provider


# ===========================
# Service Fixtures
# ===========================

@pytest.fixture
def workflow(repos) -> EscalationWorkflow:
    return EscalationWorkflow(repos)


@pytest.fixture
def orchestrator(repos, fake_provider, workflow) -> ConversationOrchestrator:
    """Orchestrator with an empty FAQ catalog."""
    return ConversationOrchestrator(
        repos=repos,
        provider=fake_provider,
        faq_matcher=FAQMatcher(),
        detector=EscalationDetector(),
        workflow=workflow,
        locks=SessionLockRegistry(),
    )


@pytest.fixture
def admin_handler(repos, workflow) -> AdminActionHandler:
    return AdminActionHandler(repos, workflow)


@pytest.fixture
def auth_service(test_settings) -> AuthService:
    return AuthService(test_settings)


@pytest.fixture
def user_service(repos, auth_service) -> UserService:
    return UserService(repos.users, auth_service)


# ===========================
# User Fixtures
# ===========================

@pytest.fixture
async def admin_user(user_service) -> User:
    return await user_service.create_user("Alice Admin", "alice@example.com", "adminpass", UserRole.ADMIN)


@pytest.fixture
async def agent_user(user_service) -> User:
    return await user_service.create_user("Sam Agent", "sam@example.com", "agentpass", UserRole.SUPPORT_AGENT)


@pytest.fixture
async def customer_user(user_service) -> User:
    return await user_service.create_user("Carl Customer", "carl@example.com", "custpass")


# ===========================
# Application Fixtures
# ===========================

@pytest.fixture
def services(test_settings, store, fake_provider) -> ServiceContainer:
    return ServiceContainer.build(test_settings, store=store, provider=fake_provider)


@pytest.fixture
def client(test_settings, services):
    """TestClient over an app wired to the in-memory container."""
    from fastapi.testclient import TestClient

    from supportdesk.main import create_app

    app = create_app(test_settings, services=services)
    with TestClient(app) as test_client:
        yield test_client


# ===========================
# Pytest Configuration
# ===========================

def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on their location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
