"""Tests for the generation invoker against a mocked OpenAI endpoint."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from portal.errors import GenerationFailed, StructuredOutputError
from portal.main import create_app
from portal.services.generation import GenerationInvoker
from tests.conftest import RecordingTransport

PROVIDER_DETAIL = "upstream says: key sk-live-123 rejected by shard 7"


def completion(content, choices=True):
    return httpx.Response(200, json={
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": content},
            "finish_reason": "stop",
        }] if choices else [],
    })


def provider_failure(status_code=500):
    return httpx.Response(status_code, json={"error": {"message": PROVIDER_DETAIL, "type": "server_error"}})


@pytest.fixture
def openai_api():
    return RecordingTransport()


@pytest.fixture
def invoker(settings, openai_api):
    return GenerationInvoker(settings, http_client=httpx.AsyncClient(transport=openai_api.transport()))


async def _generate(invoker, fallback=None):
    return await invoker.generate_text(
        system_prompt="You are helpful.",
        messages=[{"role": "user", "content": "Hi"}],
        temperature=0.7,
        max_tokens=100,
        fallback=fallback,
    )


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_generate_text_sends_chat_completion(invoker, openai_api, settings):
    openai_api.statuses.append(completion("Hello there"))

    assert await _generate(invoker) == "Hello there"

    assert len(openai_api.requests) == 1
    assert openai_api.requests[0].url.path.endswith("/chat/completions")
    body = openai_api.bodies()[0]
    assert body["model"] == settings.OPENAI_MODEL
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 100
    assert body["messages"] == [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "Hi"},
    ]
    assert "response_format" not in body


@pytest.mark.asyncio
async def test_provider_error_is_not_retried_or_leaked(invoker, openai_api):
    openai_api.statuses.append(provider_failure())

    with pytest.raises(GenerationFailed) as exc_info:
        await _generate(invoker)

    assert exc_info.value.message == "Generation call failed"
    assert PROVIDER_DETAIL not in str(exc_info.value)
    assert len(openai_api.requests) == 1


@pytest.mark.asyncio
async def test_connection_error_is_mapped(invoker, openai_api):
    openai_api.statuses.append(httpx.ConnectError("connection refused"))

    with pytest.raises(GenerationFailed) as exc_info:
        await _generate(invoker)

    assert exc_info.value.message == "Generation call failed"
    assert len(openai_api.requests) == 1


def test_sdk_retries_disabled_by_default(invoker):
    assert invoker._get_client().max_retries == 0


@pytest.mark.asyncio
async def test_missing_api_key(settings, openai_api):
    settings.OPENAI_API_KEY = ""
    invoker = GenerationInvoker(settings, http_client=httpx.AsyncClient(transport=openai_api.transport()))

    with pytest.raises(GenerationFailed) as exc_info:
        await _generate(invoker)

    assert exc_info.value.message == "Generation service is not configured"
    assert openai_api.requests == []


@pytest.mark.asyncio
async def test_no_choices(invoker, openai_api):
    openai_api.statuses.extend([completion(None, choices=False), completion(None, choices=False)])

    with pytest.raises(GenerationFailed) as exc_info:
        await _generate(invoker)
    assert exc_info.value.message == "Generation returned no content"

    assert await _generate(invoker, fallback="Try again") == "Try again"


# ---------------------------------------------------------------------------
# Structured
# ---------------------------------------------------------------------------

async def _structured(invoker):
    return await invoker.generate_structured(
        system_prompt="Return JSON.",
        user_prompt="Suggest milestones.",
        schema_hint='{"milestones": []}',
        temperature=0.7,
        max_tokens=200,
        model=invoker.fast_model,
    )


@pytest.mark.asyncio
async def test_structured_requests_json_mode(invoker, openai_api, settings):
    openai_api.statuses.append(completion(json.dumps({"milestones": [{"title": "Kickoff"}]})))

    assert await _structured(invoker) == {"milestones": [{"title": "Kickoff"}]}

    body = openai_api.bodies()[0]
    assert body["response_format"] == {"type": "json_object"}
    assert body["model"] == settings.OPENAI_FAST_MODEL
    assert body["messages"][1]["content"] == 'Suggest milestones.\n\n{"milestones": []}'


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["[1, 2]", "not json at all"])
async def test_structured_rejects_non_objects(invoker, openai_api, content):
    openai_api.statuses.append(completion(content))

    with pytest.raises(StructuredOutputError) as exc_info:
        await _structured(invoker)

    assert exc_info.value.raw == content


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

def test_provider_error_surfaces_public_message(settings, session_factory, notifier, invoker, openai_api, client_headers):
    openai_api.statuses.append(provider_failure(503))
    app = create_app(settings=settings, session_factory=session_factory, generator=invoker, notifier=notifier)

    response = TestClient(app).post(
        "/api/v1/documents/generate",
        json={"documentType": "gtm-strategy"},
        headers=client_headers,
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate document"}
    assert PROVIDER_DETAIL not in response.text
    assert len(openai_api.requests) == 1
