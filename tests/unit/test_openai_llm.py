"""Unit tests for the OpenAI and Azure OpenAI chat providers."""

import json

import httpx
import pytest

from docindex.config.schema import AzureOpenAISettings
from docindex.providers.base import ProviderConfig, ProviderError
from docindex.providers.openai_llm import AzureOpenAILLMProvider, OpenAILLMProvider


def completion(content: str) -> dict:
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"total_tokens": 12},
    }


class Recorder:
    """httpx handler that records requests and replies with a fixed response."""

    def __init__(self, status_code: int = 200, body: dict | None = None):
        self.status_code = status_code
        self.body = body if body is not None else completion("Hello there")
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def payload(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def azure_settings() -> AzureOpenAISettings:
    return AzureOpenAISettings(
        key="azure-key",
        endpoint="https://example.openai.azure.com/",
        deployment="gpt-4o",
        api_version="2024-06-01",
    )


@pytest.mark.asyncio
class TestOpenAILLMProvider:
    """Test OpenAILLMProvider functionality."""

    async def test_missing_api_key(self):
        with pytest.raises(ProviderError, match="API key is required"):
            OpenAILLMProvider(ProviderConfig(provider_type="openai", model_name="gpt-4o"))

    async def test_complete(self):
        """Test that complete sends system and user messages with bearer auth."""
        recorder = Recorder()
        provider = OpenAILLMProvider(
            ProviderConfig(
                provider_type="openai",
                model_name="gpt-4o",
                api_key="sk-test",
                extra_params={"temperature": 0.2, "max_tokens": 50},
            ),
            transport=httpx.MockTransport(recorder),
        )

        text = await provider.complete("Hi", system_prompt="Be brief")
        await provider.close()

        assert text == "Hello there"
        request = recorder.requests[0]
        assert request.url == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert recorder.payload == {
            "model": "gpt-4o",
            "messages": [
                {"role": "system", "content": "Be brief"},
                {"role": "user", "content": "Hi"},
            ],
            "temperature": 0.2,
            "max_tokens": 50,
        }

    async def test_per_call_overrides(self):
        recorder = Recorder()
        provider = OpenAILLMProvider(
            ProviderConfig(provider_type="openai", model_name="gpt-4o", api_key="sk-test"),
            transport=httpx.MockTransport(recorder),
        )

        await provider.complete("Hi", max_tokens=5, temperature=0.9)

        assert recorder.payload["max_tokens"] == 5
        assert recorder.payload["temperature"] == 0.9

    async def test_http_error(self):
        provider = OpenAILLMProvider(
            ProviderConfig(provider_type="openai", model_name="gpt-4o", api_key="sk-test"),
            transport=httpx.MockTransport(Recorder(status_code=429, body={"error": "slow down"})),
        )

        with pytest.raises(ProviderError, match="429") as exc_info:
            await provider.complete("Hi")
        assert isinstance(exc_info.value.original_error, httpx.HTTPStatusError)

    async def test_malformed_response(self):
        provider = OpenAILLMProvider(
            ProviderConfig(provider_type="openai", model_name="gpt-4o", api_key="sk-test"),
            transport=httpx.MockTransport(Recorder(body={"choices": []})),
        )

        with pytest.raises(ProviderError, match="Unexpected response"):
            await provider.complete("Hi")

    async def test_network_error(self):
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = OpenAILLMProvider(
            ProviderConfig(provider_type="openai", model_name="gpt-4o", api_key="sk-test"),
            transport=httpx.MockTransport(fail),
        )

        with pytest.raises(ProviderError, match="Network error"):
            await provider.complete("Hi")


@pytest.mark.asyncio
class TestAzureOpenAILLMProvider:
    """Test AzureOpenAILLMProvider functionality."""

    async def test_request_routing(self, azure_settings):
        """Test deployment URL, api-key header and api-version parameter."""
        recorder = Recorder()
        provider = AzureOpenAILLMProvider.from_settings(
            azure_settings,
            model_name="gpt-4o",
            temperature=0,
            transport=httpx.MockTransport(recorder),
        )

        await provider.complete("Hi")

        request = recorder.requests[0]
        assert request.url.path == "/openai/deployments/gpt-4o/chat/completions"
        assert request.url.host == "example.openai.azure.com"
        assert request.url.params["api-version"] == "2024-06-01"
        assert request.headers["api-key"] == "azure-key"
        assert "Authorization" not in request.headers
        assert recorder.payload["temperature"] == 0

    async def test_multimodal_content_is_passed_through(self, azure_settings):
        recorder = Recorder()
        provider = AzureOpenAILLMProvider.from_settings(
            azure_settings,
            model_name="gpt-4o",
            transport=httpx.MockTransport(recorder),
        )
        content = [
            {"type": "text", "text": "Describe"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA", "detail": "auto"}},
        ]

        await provider.complete(content)

        assert recorder.payload["messages"] == [{"role": "user", "content": content}]

    async def test_missing_settings(self):
        settings = AzureOpenAISettings(key="azure-key", endpoint=None, deployment=None)

        with pytest.raises(ProviderError, match="AZURE_OPENAI_ENDPOINT"):
            AzureOpenAILLMProvider.from_settings(settings, model_name="gpt-4o")
