"""OpenAI and Azure OpenAI embedding providers using the official SDK.

Trade-offs:
- API costs per token
- Requires internet connection
- Data sent to third-party service
- Rate limits apply (the SDK retries 429s on its own)
"""

from typing import Any, Optional

from openai import AsyncAzureOpenAI, AsyncOpenAI

from docindex.config.schema import AzureOpenAISettings
from docindex.observability.logging import get_logger
from docindex.providers.base import EmbeddingProvider, ProviderConfig, ProviderError

logger = get_logger(__name__)


MODEL_METADATA = {
    "text-embedding-ada-002": {"dimension": 1536, "max_tokens": 8191},
    "text-embedding-3-small": {"dimension": 1536, "max_tokens": 8191},
    "text-embedding-3-large": {"dimension": 3072, "max_tokens": 8191},
}

DEFAULT_MODEL = "text-embedding-3-small"

# Maximum number of inputs per embeddings request
MAX_BATCH_SIZE = 2048


def _classify_error(error: Exception, provider: str, action: str) -> ProviderError:
    """Wrap an SDK exception in a ProviderError with a readable message."""
    error_message = str(error)
    lowered = error_message.lower()

    if "authentication" in lowered or "api_key" in lowered or "401" in lowered:
        message = f"{provider} authentication failed: {error_message}"
    elif "rate_limit" in lowered or "rate limit" in lowered or "429" in lowered:
        message = f"{provider} rate limit exceeded: {error_message}"
    elif "connection" in lowered or "network" in lowered:
        message = f"Network error connecting to {provider}: {error_message}"
    else:
        message = f"Failed to {action}: {error_message}"

    return ProviderError(message=message, provider=provider, original_error=error)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embedding provider.

    Example:
        config = ProviderConfig(
            provider_type="openai",
            model_name="text-embedding-3-small",
            api_key="sk-..."
        )
        provider = OpenAIEmbeddingProvider(config)
        embedding = await provider.embed_text("Hello world")
    """

    provider_name = "openai"

    def __init__(self, config: ProviderConfig) -> None:
        """Initialize the provider.

        Raises:
            ProviderError: If the API key is missing or the client cannot be built
        """
        super().__init__(config)

        if not config.api_key:
            raise ProviderError(message="API key is required", provider=self.provider_name)

        self.model_name = config.model_name or DEFAULT_MODEL

        metadata = MODEL_METADATA.get(self.model_name)
        if metadata is None:
            logger.warning(
                "unknown_embedding_model",
                model_name=self.model_name,
                known_models=list(MODEL_METADATA.keys()),
            )
            metadata = {"dimension": 1536, "max_tokens": 8191}
        self._dimension = metadata["dimension"]
        self._max_tokens = metadata["max_tokens"]

        try:
            self.client = self._create_client()
        except Exception as e:
            raise ProviderError(
                message=f"Failed to initialize {self.provider_name} client: {e}",
                provider=self.provider_name,
                original_error=e,
            ) from e

        logger.info(
            "embedding_provider_initialized",
            provider=self.provider_name,
            model_name=self.model_name,
            dimension=self._dimension,
        )

    def _create_client(self) -> Any:
        return AsyncOpenAI(api_key=self.config.api_key, **self.config.extra_params)

    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Raises:
            ProviderError: If text is empty or the API call fails
        """
        if not text or not text.strip():
            raise ProviderError(message="Cannot embed empty text", provider=self.provider_name)

        try:
            response = await self.client.embeddings.create(input=text, model=self.model_name)
        except Exception as e:
            raise _classify_error(e, self.provider_name, "generate embedding") from e

        return response.data[0].embedding

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts, splitting large batches.

        Raises:
            ProviderError: If any text is empty or an API call fails
        """
        if not texts:
            return []

        for i, text in enumerate(texts):
            if not text or not text.strip():
                raise ProviderError(
                    message=f"Cannot embed empty text at index {i}",
                    provider=self.provider_name,
                )

        all_embeddings: list[list[float]] = []
        total_tokens = 0

        for i in range(0, len(texts), MAX_BATCH_SIZE):
            batch = texts[i : i + MAX_BATCH_SIZE]
            logger.debug(
                "calling_embeddings_api_batch",
                provider=self.provider_name,
                batch_size=len(batch),
                batch_index=i // MAX_BATCH_SIZE,
            )

            try:
                response = await self.client.embeddings.create(input=batch, model=self.model_name)
            except Exception as e:
                raise _classify_error(e, self.provider_name, "generate batch embeddings") from e

            all_embeddings.extend(item.embedding for item in response.data)
            if getattr(response, "usage", None):
                total_tokens += response.usage.total_tokens

        logger.info(
            "batch_embeddings_generated",
            provider=self.provider_name,
            total_texts=len(texts),
            total_tokens=total_tokens,
            model=self.model_name,
        )
        return all_embeddings

    def get_dimension(self) -> int:
        return self._dimension

    def get_max_tokens(self) -> int:
        return self._max_tokens

    async def close(self) -> None:
        """Close the SDK client connection."""
        await self.client.close()


class AzureOpenAIEmbeddingProvider(OpenAIEmbeddingProvider):
    """Embedding provider for an Azure OpenAI embedding deployment.

    ``model_name`` is the deployment name; Azure routes on it.
    """

    provider_name = "azure"

    def _create_client(self) -> Any:
        params = dict(self.config.extra_params)
        endpoint = params.pop("endpoint", None)
        api_version = params.pop("api_version", "2024-06-01")
        if not endpoint:
            raise ValueError("Azure endpoint is required (AZURE_OPENAI_ENDPOINT)")

        return AsyncAzureOpenAI(
            api_key=self.config.api_key,
            azure_endpoint=endpoint,
            api_version=api_version,
            **params,
        )

    @classmethod
    def from_settings(
        cls,
        settings: AzureOpenAISettings,
        deployment: Optional[str] = None,
    ) -> "AzureOpenAIEmbeddingProvider":
        """Build a provider from AZURE_OPENAI_* settings."""
        deployment = deployment or settings.embedding_deployment
        if not deployment:
            raise ProviderError(
                message="No embedding deployment configured (AZURE_OPENAI_EMBEDDING_DEPLOYMENT)",
                provider=cls.provider_name,
            )

        config = ProviderConfig(
            provider_type="azure",
            model_name=deployment,
            api_key=settings.key,
            extra_params={"endpoint": settings.endpoint, "api_version": settings.api_version},
        )
        return cls(config)
