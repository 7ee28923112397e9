"""
Tests for completion providers.
The OpenAI client is replaced with an AsyncMock; no network calls are made.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from supportdesk.exceptions import ProviderFailure
from supportdesk.models import Message
from supportdesk.services.completion_provider import (
    OfflineCompletionProvider,
    OpenAICompletionProvider,
    build_context,
    create_completion_provider,
)


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _client(*results):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(results))
    client.close = AsyncMock()
    return client


def _provider(client, **kwargs) -> OpenAICompletionProvider:
    options = {"api_key": "sk-test", "models": ["model-a", "model-b"], "client": client}
    options.update(kwargs)
    return OpenAICompletionProvider(**options)


# ===========================
# Context
# ===========================

def test_build_context_for_new_conversation():
    assert build_context([]) == "This is a new customer support conversation."


def test_build_context_keeps_recent_tail():
    transcript = [Message.user(f"m{i}") for i in range(5)]

    context = build_context(transcript, limit=2)

    assert context.splitlines()[1:] == ["user: m3", "user: m4"]


# ===========================
# OpenAI provider
# ===========================

async def test_generate_sends_system_prompt_and_context():
    client = _client(_completion("  Happy to help!  "))
    provider = _provider(client, context_messages=1)
    transcript = [Message.user("old question"), Message.user("Where is my refund?")]

    reply = await provider.generate("Where is my refund?", transcript)

    assert reply == "Happy to help!"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "model-a"
    assert kwargs["messages"][0]["role"] == "system"
    user_content = kwargs["messages"][1]["content"]
    assert "old question" not in user_content
    assert user_content.endswith("Customer query: Where is my refund?")


async def test_empty_completion_falls_back_to_next_model():
    client = _client(_completion(""), _completion("From the fallback"))
    provider = _provider(client)

    reply = await provider.generate("hi", [])

    assert reply == "From the fallback"
    models = [c.kwargs["model"] for c in client.chat.completions.create.call_args_list]
    assert models == ["model-a", "model-b"]


async def test_all_models_failing_raises_provider_failure():
    client = _client(_completion(None), _completion("   "))
    provider = _provider(client)

    with pytest.raises(ProviderFailure):
        await provider.summarize([Message.user("help")])


async def test_open_circuit_short_circuits_calls():
    client = _client(_completion(""), _completion(""), _completion("never used"))
    provider = _provider(client, breaker_fail_max=1)

    with pytest.raises(ProviderFailure):
        await provider.generate("hi", [])
    calls = client.chat.completions.create.await_count

    with pytest.raises(ProviderFailure):
        await provider.generate("hi again", [])

    assert client.chat.completions.create.await_count == calls


def test_provider_requires_a_model():
    with pytest.raises(ValueError):
        OpenAICompletionProvider(api_key="sk-test", models=[], client=MagicMock())


async def test_aclose_closes_client():
    client = _client()
    await _provider(client).aclose()

    client.close.assert_awaited_once()


# ===========================
# Offline provider and factory
# ===========================

async def test_offline_provider_is_deterministic():
    provider = OfflineCompletionProvider()

    assert await provider.generate("Where is my parcel?", []) == provider.GENERIC_REPLY
    assert await provider.generate("Get me a human", []) == provider.HANDOFF_REPLY


async def test_offline_summary_mentions_latest_request():
    provider = OfflineCompletionProvider()
    transcript = [Message.system("start"), Message.user("first"), Message.user("second")]

    summary = await provider.summarize(transcript)

    assert summary == "Customer sent 2 message(s). Latest request: second"
    assert await provider.summarize([]) == "No customer messages yet."


def test_factory_uses_offline_provider_without_key(settings_override):
    configured = settings_override({"openai_api_key": None})
    assert create_completion_provider(configured).name == "offline"

    configured = settings_override({"dev_mock_ai": False})
    assert create_completion_provider(configured).name == "offline"


async def test_factory_builds_openai_provider_with_key(settings_override):
    configured = settings_override({"dev_mock_ai": False, "openai_api_key": SecretStr("sk-test")})

    provider = create_completion_provider(configured)

    assert provider.name == "openai"
    assert provider.models == configured.completion_models
    await provider.aclose()
