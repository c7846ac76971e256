"""Abstract base classes for embedding and LLM providers.

Why this exists:
- Allows swapping between OpenAI, Azure OpenAI and offline mock backends
- Enables testing without network access
- Provides a stable interface for the index and the pipelines

How to extend:
1. Subclass EmbeddingProvider or LLMProvider
2. Implement all abstract methods
3. Register in create_llm_provider / create_embedding_provider
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel


class ProviderConfig(BaseModel):
    """Base configuration for all providers."""

    provider_type: str
    model_name: str
    api_key: Optional[str] = None
    extra_params: dict[str, Any] = {}


class EmbeddingProvider(ABC):
    """Abstract interface for embedding providers.

    Implementations must handle:
    - Single text embedding
    - Batch text embedding
    - Model metadata (dimension, max tokens)
    """

    def __init__(self, config: ProviderConfig) -> None:
        """Initialize provider with configuration."""
        self.config = config

    @abstractmethod
    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Raises:
            ProviderError: If embedding generation fails
        """

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts, preserving order.

        Raises:
            ProviderError: If embedding generation fails
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the embedding dimension for this model."""

    @abstractmethod
    def get_max_tokens(self) -> int:
        """Return the maximum token length for this model."""

    async def close(self) -> None:
        """Release network resources. No-op by default."""


class LLMProvider(ABC):
    """Abstract interface for LLM providers.

    ``chat`` takes OpenAI-format messages; a message ``content`` is either a
    string or a list of content parts (``text`` and ``image_url``), which is
    how multimodal completions are sent.
    """

    def __init__(self, config: ProviderConfig) -> None:
        """Initialize provider with configuration."""
        self.config = config

    @property
    def model_name(self) -> str:
        return self.config.model_name

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Run a chat completion and return the assistant text.

        Args:
            messages: OpenAI-format chat messages
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature, provider default when None

        Raises:
            ProviderError: If generation fails
        """

    async def complete(
        self,
        prompt: str | list[dict[str, Any]],
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Generate a completion for a single user prompt.

        ``prompt`` may be plain text or a content-part list built by
        :func:`docindex.providers.multimodal.create_message_content`.
        """
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return await self.chat(messages, max_tokens=max_tokens, temperature=temperature)

    def count_tokens(self, text: str) -> int:
        """Estimate token count (~4 characters per token)."""
        return len(text) // 4

    async def close(self) -> None:
        """Release network resources. No-op by default."""


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider: str, original_error: Optional[Exception] = None):
        self.message = message
        self.provider = provider
        self.original_error = original_error
        super().__init__(self.message)
