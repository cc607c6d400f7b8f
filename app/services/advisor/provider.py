"""Providers for generating advisor replies."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

import httpx
from openai import APIConnectionError, APIStatusError, AsyncAzureOpenAI, AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletion

from .errors import ConfigurationError, UpstreamError
from .models import ChatMessage

DEFAULT_OPENAI_MODEL = "gpt-4-turbo-preview"
DEFAULT_AZURE_API_VERSION = "2024-08-01-preview"
TEMPERATURE = 0.7
MAX_TOKENS = 1500


@dataclass(frozen=True)
class DirectProviderConfig:
    """Talk to the OpenAI API with a bearer key."""

    api_key: Optional[str]
    model: str = DEFAULT_OPENAI_MODEL

    label = "OpenAI"

    def presence_flags(self) -> Dict[str, bool]:
        return {
            "hasApiKey": bool(self.api_key),
            "hasModel": bool(self.model),
        }


@dataclass(frozen=True)
class AzureProviderConfig:
    """Talk to an Azure OpenAI deployment. The deployment selects the model."""

    endpoint: str
    api_key: str
    deployment: str
    api_version: str = DEFAULT_AZURE_API_VERSION

    label = "Azure OpenAI"

    def presence_flags(self) -> Dict[str, bool]:
        return {
            "hasEndpoint": bool(self.endpoint),
            "hasApiKey": bool(self.api_key),
            "hasDeployment": bool(self.deployment),
            "hasApiVersion": bool(self.api_version),
        }


ProviderConfig = Union[DirectProviderConfig, AzureProviderConfig]


def resolve_provider_config(settings: Any) -> ProviderConfig:
    """Pick the provider once from settings. Azure wins when endpoint and key are both set."""
    if settings.AZURE_OPENAI_ENDPOINT and settings.AZURE_OPENAI_API_KEY:
        if not settings.AZURE_OPENAI_DEPLOYMENT:
            raise ConfigurationError("AZURE_OPENAI_DEPLOYMENT must be set when using Azure OpenAI")
        return AzureProviderConfig(
            endpoint=settings.AZURE_OPENAI_ENDPOINT.rstrip("/"),
            api_key=settings.AZURE_OPENAI_API_KEY,
            deployment=settings.AZURE_OPENAI_DEPLOYMENT,
            api_version=settings.AZURE_OPENAI_API_VERSION or DEFAULT_AZURE_API_VERSION,
        )
    return DirectProviderConfig(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL or DEFAULT_OPENAI_MODEL,
    )


class CompletionProvider:
    """Base provider interface."""

    async def complete(self, system_prompt: str, history: Iterable[ChatMessage]) -> str:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release network resources held by the provider."""


class OpenAICompletionProvider(CompletionProvider):
    """Chat completions against OpenAI or Azure OpenAI, chosen by ``config``."""

    def __init__(
        self,
        config: ProviderConfig,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        # Failures surface to the caller; the SDK must not retry behind our back.
        client_kwargs: Dict[str, Any] = {"max_retries": 0}
        if http_client is not None:
            client_kwargs["http_client"] = http_client

        if isinstance(config, AzureProviderConfig):
            self.client: AsyncOpenAI = AsyncAzureOpenAI(
                azure_endpoint=config.endpoint,
                azure_deployment=config.deployment,
                api_key=config.api_key,
                api_version=config.api_version,
                **client_kwargs,
            )
        else:
            # An empty key still builds a client; the upstream answers 401 at call time.
            self.client = AsyncOpenAI(api_key=config.api_key or "", **client_kwargs)

    async def complete(self, system_prompt: str, history: Iterable[ChatMessage]) -> str:
        payload = self._build_payload(system_prompt, history)
        try:
            response = await self.client.post(
                "/chat/completions",
                body=payload,
                cast_to=ChatCompletion,
            )
        except APIStatusError as exc:
            raise UpstreamError(exc.message, status=exc.status_code) from exc
        except APIConnectionError as exc:
            raise UpstreamError(f"Could not reach {self.config.label}: {exc}") from exc
        except OpenAIError as exc:
            raise UpstreamError(str(exc)) from exc

        if not response.choices:
            raise UpstreamError(f"{self.config.label} returned no choices")
        return response.choices[0].message.content or ""

    async def aclose(self) -> None:
        await self.client.close()

    def _build_payload(self, system_prompt: str, history: Iterable[ChatMessage]) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [{"role": "system", "content": system_prompt}]
        messages.extend(message.to_payload() for message in history)

        payload: Dict[str, Any] = {
            "messages": messages,
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }
        if isinstance(self.config, DirectProviderConfig):
            payload["model"] = self.config.model
        return payload
