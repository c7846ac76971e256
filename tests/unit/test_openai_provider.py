"""Unit tests for the OpenAI and Azure OpenAI embedding providers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docindex.config.schema import AzureOpenAISettings
from docindex.providers.base import ProviderConfig, ProviderError
from docindex.providers.openai import (
    AzureOpenAIEmbeddingProvider,
    OpenAIEmbeddingProvider,
)


def embeddings_response(*vectors: list[float], total_tokens: int = 10) -> MagicMock:
    response = MagicMock()
    response.data = [MagicMock(embedding=v) for v in vectors]
    response.usage = MagicMock(total_tokens=total_tokens)
    return response


def openai_config(**kwargs) -> ProviderConfig:
    return ProviderConfig(
        provider_type="openai",
        model_name=kwargs.pop("model_name", "text-embedding-3-small"),
        api_key=kwargs.pop("api_key", "test-key"),
        **kwargs,
    )


@pytest.mark.asyncio
class TestOpenAIEmbeddingProvider:
    """Test OpenAIEmbeddingProvider functionality."""

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_initialization(self, mock_openai_class):
        """Test provider initialization."""
        provider = OpenAIEmbeddingProvider(openai_config())

        assert provider.model_name == "text-embedding-3-small"
        assert provider.get_dimension() == 1536
        assert provider.get_max_tokens() == 8191
        mock_openai_class.assert_called_once_with(api_key="test-key")

    async def test_missing_api_key(self):
        with pytest.raises(ProviderError, match="API key is required"):
            OpenAIEmbeddingProvider(openai_config(api_key=None))

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_unknown_model_uses_default_dimension(self, mock_openai_class):
        provider = OpenAIEmbeddingProvider(openai_config(model_name="my-custom-embedder"))
        assert provider.get_dimension() == 1536

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_embed_text(self, mock_openai_class):
        """Test single text embedding."""
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(return_value=embeddings_response([0.1] * 1536))
        mock_openai_class.return_value = mock_client

        provider = OpenAIEmbeddingProvider(openai_config())
        embedding = await provider.embed_text("This is a test sentence.")

        assert len(embedding) == 1536
        mock_client.embeddings.create.assert_awaited_once_with(
            input="This is a test sentence.",
            model="text-embedding-3-small",
        )

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_embed_text_empty(self, mock_openai_class):
        provider = OpenAIEmbeddingProvider(openai_config())

        with pytest.raises(ProviderError, match="Cannot embed empty text"):
            await provider.embed_text("   ")

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_embed_batch(self, mock_openai_class):
        """Test batch text embedding."""
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(
            return_value=embeddings_response([0.1] * 3, [0.2] * 3, total_tokens=20)
        )
        mock_openai_class.return_value = mock_client

        provider = OpenAIEmbeddingProvider(openai_config())
        embeddings = await provider.embed_batch(["first", "second"])

        assert embeddings == [[0.1] * 3, [0.2] * 3]
        mock_client.embeddings.create.assert_awaited_once_with(
            input=["first", "second"],
            model="text-embedding-3-small",
        )

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_embed_batch_empty_list(self, mock_openai_class):
        provider = OpenAIEmbeddingProvider(openai_config())
        assert await provider.embed_batch([]) == []

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_embed_batch_rejects_empty_text(self, mock_openai_class):
        provider = OpenAIEmbeddingProvider(openai_config())

        with pytest.raises(ProviderError, match="index 1"):
            await provider.embed_batch(["ok", ""])

    @patch("docindex.providers.openai.MAX_BATCH_SIZE", 2)
    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_embed_batch_splits_requests(self, mock_openai_class):
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=[embeddings_response([1.0], [2.0]), embeddings_response([3.0])]
        )
        mock_openai_class.return_value = mock_client

        provider = OpenAIEmbeddingProvider(openai_config())
        embeddings = await provider.embed_batch(["a", "b", "c"])

        assert embeddings == [[1.0], [2.0], [3.0]]
        assert mock_client.embeddings.create.await_count == 2

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_rate_limit_error(self, mock_openai_class):
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(side_effect=Exception("Error code: 429 - rate limit"))
        mock_openai_class.return_value = mock_client

        provider = OpenAIEmbeddingProvider(openai_config())

        with pytest.raises(ProviderError, match="rate limit exceeded") as exc_info:
            await provider.embed_text("hello")
        assert exc_info.value.provider == "openai"

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_authentication_error(self, mock_openai_class):
        mock_client = MagicMock()
        mock_client.embeddings.create = AsyncMock(side_effect=Exception("Error code: 401 - invalid key"))
        mock_openai_class.return_value = mock_client

        provider = OpenAIEmbeddingProvider(openai_config())

        with pytest.raises(ProviderError, match="authentication failed"):
            await provider.embed_batch(["hello"])

    @patch("docindex.providers.openai.AsyncOpenAI")
    async def test_close(self, mock_openai_class):
        mock_client = MagicMock()
        mock_client.close = AsyncMock()
        mock_openai_class.return_value = mock_client

        provider = OpenAIEmbeddingProvider(openai_config())
        await provider.close()

        mock_client.close.assert_awaited_once()


@pytest.mark.asyncio
class TestAzureOpenAIEmbeddingProvider:
    """Test AzureOpenAIEmbeddingProvider functionality."""

    @patch("docindex.providers.openai.AsyncAzureOpenAI")
    async def test_from_settings(self, mock_azure_class):
        """Test that settings map onto the Azure client arguments."""
        settings = AzureOpenAISettings(
            key="azure-key",
            endpoint="https://example.openai.azure.com",
            api_version="2024-06-01",
            embedding_deployment="embeddings",
        )

        provider = AzureOpenAIEmbeddingProvider.from_settings(settings)

        assert provider.model_name == "embeddings"
        mock_azure_class.assert_called_once_with(
            api_key="azure-key",
            azure_endpoint="https://example.openai.azure.com",
            api_version="2024-06-01",
        )

    async def test_from_settings_without_deployment(self):
        settings = AzureOpenAISettings(
            key="k",
            endpoint="https://example.openai.azure.com",
            embedding_deployment=None,
        )

        with pytest.raises(ProviderError, match="No embedding deployment configured"):
            AzureOpenAIEmbeddingProvider.from_settings(settings)

    async def test_missing_endpoint(self):
        config = ProviderConfig(provider_type="azure", model_name="embeddings", api_key="k")

        with pytest.raises(ProviderError, match="Azure endpoint is required"):
            AzureOpenAIEmbeddingProvider(config)
