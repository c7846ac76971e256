"""OpenAI and Azure OpenAI LLM providers.

Both talk to the chat completions endpoint over httpx. They differ only in
the base URL and how the key is sent:

- OpenAI: ``{base_url}/chat/completions`` with a bearer token
- Azure:  ``{endpoint}/openai/deployments/{deployment}/chat/completions``
  with an ``api-key`` header and an ``api-version`` query parameter
"""

from typing import Any, Optional

import httpx

from docindex.config.schema import AzureOpenAISettings
from docindex.observability.logging import get_logger
from docindex.providers.base import LLMProvider, ProviderConfig, ProviderError

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAILLMProvider(LLMProvider):
    """LLM provider using the OpenAI API (or compatible endpoints like Ollama)."""

    provider_name = "openai"

    def __init__(self, config: ProviderConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        """Initialize the provider.

        Args:
            config: Provider configuration. ``extra_params`` may carry
                ``base_url``, ``timeout`` and ``temperature``.
            transport: Optional httpx transport, used by tests
        """
        super().__init__(config)
        self.extra_params = dict(config.extra_params)
        self.temperature: float = self.extra_params.get("temperature", 0.0)
        self.max_tokens: Optional[int] = self.extra_params.get("max_tokens")
        self.client = self._create_client(transport)

    def _create_client(self, transport: Optional[httpx.AsyncBaseTransport]) -> httpx.AsyncClient:
        if not self.config.api_key:
            raise ProviderError(message="API key is required", provider=self.provider_name)

        return httpx.AsyncClient(
            base_url=self.extra_params.get("base_url", DEFAULT_BASE_URL),
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.extra_params.get("timeout", 60.0),
            transport=transport,
        )

    def _build_payload(
        self,
        messages: list[dict[str, Any]],
        max_tokens: Optional[int],
        temperature: Optional[float],
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }
        max_tokens = max_tokens or self.max_tokens
        if max_tokens:
            payload["max_tokens"] = max_tokens
        return payload

    async def chat(
        self,
        messages: list[dict[str, Any]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Run a chat completion.

        Raises:
            ProviderError: On HTTP errors or a malformed response body
        """
        payload = self._build_payload(messages, max_tokens, temperature)

        try:
            logger.debug(
                "calling_chat_completions",
                provider=self.provider_name,
                model=self.model_name,
                message_count=len(messages),
            )
            response = await self.client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                message=f"{self.provider_name} API error: {e.response.status_code} - {e.response.text}",
                provider=self.provider_name,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                message=f"Network error calling {self.provider_name}: {e}",
                provider=self.provider_name,
                original_error=e,
            ) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError(
                message=f"Unexpected response from {self.provider_name}: {e}",
                provider=self.provider_name,
                original_error=e,
            ) from e

        usage = data.get("usage") or {}
        logger.info(
            "chat_completion_generated",
            provider=self.provider_name,
            model=self.model_name,
            total_tokens=usage.get("total_tokens"),
        )
        return content or ""

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()


class AzureOpenAILLMProvider(OpenAILLMProvider):
    """LLM provider for an Azure OpenAI deployment.

    Example:
        azure = AzureOpenAISettings()  # reads AZURE_OPENAI_* variables
        llm = AzureOpenAILLMProvider.from_settings(azure, model_name="gpt-4o", temperature=0)
        text = await llm.complete("Hello")
    """

    provider_name = "azure"

    def _create_client(self, transport: Optional[httpx.AsyncBaseTransport]) -> httpx.AsyncClient:
        endpoint = self.extra_params.get("endpoint")
        deployment = self.extra_params.get("deployment")
        if not (self.config.api_key and endpoint and deployment):
            raise ProviderError(
                message=(
                    "Azure OpenAI requires a key, endpoint and deployment. "
                    "Set AZURE_OPENAI_KEY, AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_DEPLOYMENT"
                ),
                provider=self.provider_name,
            )

        logger.info(
            "azure_openai_llm_initialized",
            endpoint=endpoint,
            deployment=deployment,
            model=self.model_name,
        )
        return httpx.AsyncClient(
            base_url=f"{endpoint.rstrip('/')}/openai/deployments/{deployment}",
            headers={
                "api-key": self.config.api_key,
                "Content-Type": "application/json",
            },
            params={"api-version": self.extra_params.get("api_version", "2024-06-01")},
            timeout=self.extra_params.get("timeout", 60.0),
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: AzureOpenAISettings,
        model_name: str,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "AzureOpenAILLMProvider":
        """Build a provider from AZURE_OPENAI_* settings, a model name and a temperature."""
        config = ProviderConfig(
            provider_type="azure",
            model_name=model_name,
            api_key=settings.key,
            extra_params={
                "endpoint": settings.endpoint,
                "deployment": settings.deployment,
                "api_version": settings.api_version,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "timeout": timeout,
            },
        )
        return cls(config, transport=transport)
