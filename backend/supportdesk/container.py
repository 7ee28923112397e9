"""
Service wiring.

Builds every service the API needs from settings and keeps them together on
``app.state.services``. Tests build a container directly with an in-memory
store and a fake completion provider.

Version: 1.0.0
"""
import logging
from dataclasses import dataclass
from typing import Optional

from .agents import AdminActionHandler, ConversationOrchestrator, EscalationWorkflow
from .config import Settings, StoreType
from .data import sample_faq_entries
from .exceptions import SupportDeskError
from .services import (
    AuthService,
    CompletionProvider,
    EscalationDetector,
    FAQMatcher,
    StatsService,
    TopicFilter,
    UserService,
    create_completion_provider,
)
from .store import DocumentStore, Repositories, SessionLockRegistry, create_document_store

logger = logging.getLogger(__name__)


def build_document_store(settings: Settings) -> DocumentStore:
    """Create the store selected by ``STORE_TYPE``."""
    if settings.store_type == StoreType.REDIS.value:
        return create_document_store(
            "redis",
            redis_url=settings.redis_url,
            key_prefix=settings.redis_key_prefix,
            max_connections=settings.redis_max_connections,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_connect_timeout,
            health_check_interval=settings.redis_health_check_interval,
        )
    return create_document_store("in_memory")


@dataclass
class ServiceContainer:
    settings: Settings
    store: DocumentStore
    repos: Repositories
    faq_matcher: FAQMatcher
    detector: EscalationDetector
    provider: CompletionProvider
    workflow: EscalationWorkflow
    locks: SessionLockRegistry
    orchestrator: ConversationOrchestrator
    admin: AdminActionHandler
    auth: AuthService
    users: UserService
    stats: StatsService

    @classmethod
    def build(
        cls,
        settings: Settings,
        store: Optional[DocumentStore] = None,
        provider: Optional[CompletionProvider] = None,
    ) -> "ServiceContainer":
        """
        Wire the services.

        Args:
            settings: Application settings
            store: Store to use instead of the configured one
            provider: Completion provider to use instead of the configured one

        Returns:
            ServiceContainer
        """
        store = store or build_document_store(settings)
        repos = Repositories(store)
        provider = provider or create_completion_provider(settings)

        faq_matcher = FAQMatcher()
        detector = EscalationDetector(extra_keywords=settings.escalation_extra_keywords)
        workflow = EscalationWorkflow(repos)
        locks = SessionLockRegistry()
        orchestrator = ConversationOrchestrator(
            repos=repos,
            provider=provider,
            faq_matcher=faq_matcher,
            detector=detector,
            workflow=workflow,
            topic_filter=TopicFilter(),
            locks=locks,
        )
        auth = AuthService(settings)

        return cls(
            settings=settings,
            store=store,
            repos=repos,
            faq_matcher=faq_matcher,
            detector=detector,
            provider=provider,
            workflow=workflow,
            locks=locks,
            orchestrator=orchestrator,
            admin=AdminActionHandler(repos, workflow),
            auth=auth,
            users=UserService(repos.users, auth),
            stats=StatsService(repos),
        )

    # ===========================
    # Startup
    # ===========================

    async def seed_faqs(self, force: bool = False) -> int:
        """
        Insert the default FAQ catalog when the collection is empty.

        Args:
            force: Seed even if ``SEED_SAMPLE_FAQS`` is off

        Returns:
            Number of entries inserted
        """
        if not (force or self.settings.seed_sample_faqs):
            return 0
        if await self.repos.faqs.count() > 0:
            return 0

        inserted = 0
        for entry in sample_faq_entries():
            if await self.repos.faqs.insert(entry):
                inserted += 1

        logger.info(f"Seeded {inserted} sample FAQs")
        return inserted

    async def reload_faqs(self) -> int:
        entries = await self.repos.faqs.list()
        self.faq_matcher.reload(entries)
        return len(entries)

    async def ensure_bootstrap_admin(self) -> None:
        email = self.settings.bootstrap_admin_email
        password = self.settings.bootstrap_admin_password
        if not email:
            return
        if password is None:
            logger.warning("BOOTSTRAP_ADMIN_EMAIL set without BOOTSTRAP_ADMIN_PASSWORD; skipping")
            return

        try:
            admin = await self.users.ensure_admin(
                email=email,
                password=password.get_secret_value(),
                name=self.settings.bootstrap_admin_name,
            )
            logger.info(f"Bootstrap admin ready: {admin.email}")
        except SupportDeskError as e:
            logger.error(f"Failed to create bootstrap admin: {e}")

    async def startup(self) -> None:
        """Seed data and load the FAQ catalog."""
        await self.seed_faqs()
        count = await self.reload_faqs()
        logger.info(f"✓ FAQ catalog loaded ({count} entries)")
        await self.ensure_bootstrap_admin()

    async def aclose(self) -> None:
        await self.provider.aclose()
        await self.store.close()


__all__ = ['ServiceContainer', 'build_document_store']
