import json
from types import SimpleNamespace
from typing import List

import httpx
import pytest

from app.services.advisor import ChatMessage, ConfigurationError, UpstreamError
from app.services.advisor.provider import (
    AzureProviderConfig,
    DirectProviderConfig,
    OpenAICompletionProvider,
    resolve_provider_config,
)


def _settings(**overrides) -> SimpleNamespace:
    values = {
        "OPENAI_API_KEY": None,
        "OPENAI_MODEL": None,
        "AZURE_OPENAI_ENDPOINT": None,
        "AZURE_OPENAI_API_KEY": None,
        "AZURE_OPENAI_DEPLOYMENT": None,
        "AZURE_OPENAI_API_VERSION": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _completion(content: str) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-test",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def _capturing_client(captured: List[httpx.Request], response: httpx.Response) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return response

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


HISTORY = [
    ChatMessage(role="user", content="Hello"),
    ChatMessage(role="assistant", content="Hi there"),
    ChatMessage(role="user", content="More"),
]


# ---------------------------------------------------------------------------
# Configuration resolution
# ---------------------------------------------------------------------------
def test_direct_mode_is_default_with_fallback_model():
    config = resolve_provider_config(_settings(OPENAI_API_KEY="sk-direct"))  # pragma: allowlist secret
    assert config == DirectProviderConfig(api_key="sk-direct", model="gpt-4-turbo-preview")
    assert config.label == "OpenAI"


def test_direct_mode_uses_configured_model():
    config = resolve_provider_config(_settings(OPENAI_API_KEY="sk", OPENAI_MODEL="gpt-4o"))
    assert config.model == "gpt-4o"


def test_azure_selected_when_endpoint_and_key_present():
    config = resolve_provider_config(
        _settings(
            OPENAI_API_KEY="sk-ignored",
            AZURE_OPENAI_ENDPOINT="https://advisor.openai.azure.com/",
            AZURE_OPENAI_API_KEY="azure-key",  # pragma: allowlist secret
            AZURE_OPENAI_DEPLOYMENT="gpt4-deploy",
        )
    )
    assert isinstance(config, AzureProviderConfig)
    assert config.endpoint == "https://advisor.openai.azure.com"
    assert config.api_version == "2024-08-01-preview"
    assert config.label == "Azure OpenAI"


@pytest.mark.parametrize(
    "overrides",
    [
        {"AZURE_OPENAI_ENDPOINT": "https://advisor.openai.azure.com"},
        {"AZURE_OPENAI_API_KEY": "azure-key"},
    ],
)
def test_partial_azure_settings_fall_back_to_direct(overrides):
    config = resolve_provider_config(_settings(OPENAI_API_KEY="sk", AZURE_OPENAI_DEPLOYMENT="d", **overrides))
    assert isinstance(config, DirectProviderConfig)


def test_azure_without_deployment_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        resolve_provider_config(
            _settings(AZURE_OPENAI_ENDPOINT="https://advisor.openai.azure.com", AZURE_OPENAI_API_KEY="k")
        )


def test_presence_flags_report_configuration():
    assert DirectProviderConfig(api_key=None).presence_flags() == {"hasApiKey": False, "hasModel": True}
    flags = AzureProviderConfig(endpoint="https://x", api_key="k", deployment="d").presence_flags()
    assert flags == {"hasEndpoint": True, "hasApiKey": True, "hasDeployment": True, "hasApiVersion": True}


# ---------------------------------------------------------------------------
# Outgoing requests
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_direct_request_carries_model_and_bearer_key():
    captured: List[httpx.Request] = []
    http_client = _capturing_client(captured, httpx.Response(200, json=_completion("Direct reply")))
    provider = OpenAICompletionProvider(
        DirectProviderConfig(api_key="sk-direct", model="gpt-test"),  # pragma: allowlist secret
        http_client=http_client,
    )

    reply = await provider.complete("System text", HISTORY)

    assert reply == "Direct reply"
    assert len(captured) == 1
    request = captured[0]
    assert request.method == "POST"
    assert request.url.path.endswith("/chat/completions")
    assert "/deployments/" not in request.url.path
    assert request.headers["authorization"] == "Bearer sk-direct"
    assert "api-key" not in request.headers

    body = json.loads(request.content)
    assert body["model"] == "gpt-test"
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 1500
    assert body["messages"] == [
        {"role": "system", "content": "System text"},
        {"role": "user", "content": "Hello"},
        {"role": "assistant", "content": "Hi there"},
        {"role": "user", "content": "More"},
    ]


@pytest.mark.asyncio
async def test_azure_request_targets_deployment_without_model_field():
    captured: List[httpx.Request] = []
    http_client = _capturing_client(captured, httpx.Response(200, json=_completion("Azure reply")))
    provider = OpenAICompletionProvider(
        AzureProviderConfig(
            endpoint="https://advisor.openai.azure.com",
            api_key="azure-key",  # pragma: allowlist secret
            deployment="gpt4-deploy",
        ),
        http_client=http_client,
    )

    reply = await provider.complete("System text", HISTORY)

    assert reply == "Azure reply"
    request = captured[0]
    assert request.url.host == "advisor.openai.azure.com"
    assert request.url.path == "/openai/deployments/gpt4-deploy/chat/completions"
    assert request.url.params["api-version"] == "2024-08-01-preview"
    assert request.headers["api-key"] == "azure-key"

    body = json.loads(request.content)
    assert "model" not in body
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 1500
    assert body["messages"][0] == {"role": "system", "content": "System text"}
    assert len(body["messages"]) == 4


@pytest.mark.asyncio
async def test_non_2xx_becomes_upstream_error_without_retry():
    captured: List[httpx.Request] = []
    http_client = _capturing_client(
        captured,
        httpx.Response(401, json={"error": {"message": "Invalid API key", "type": "invalid_request_error"}}),
    )
    provider = OpenAICompletionProvider(DirectProviderConfig(api_key="bad"), http_client=http_client)

    with pytest.raises(UpstreamError) as excinfo:
        await provider.complete("System text", HISTORY)

    assert excinfo.value.status == 401
    assert "Invalid API key" in excinfo.value.message
    assert len(captured) == 1


@pytest.mark.asyncio
async def test_transport_failure_becomes_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    provider = OpenAICompletionProvider(DirectProviderConfig(api_key="sk"), http_client=http_client)

    with pytest.raises(UpstreamError) as excinfo:
        await provider.complete("System text", HISTORY)

    assert excinfo.value.status is None
    assert "OpenAI" in excinfo.value.message


@pytest.mark.asyncio
async def test_empty_choices_is_an_upstream_error():
    payload = _completion("unused")
    payload["choices"] = []
    http_client = _capturing_client([], httpx.Response(200, json=payload))
    provider = OpenAICompletionProvider(DirectProviderConfig(api_key="sk"), http_client=http_client)

    with pytest.raises(UpstreamError):
        await provider.complete("System text", HISTORY)
