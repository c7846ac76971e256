"""Offline providers for demos and tests.

WARNING: these are not models. The embedder hashes words into a fixed-size
vector so that texts sharing vocabulary land close together; the LLM echoes
what it was asked.
"""

import hashlib
import re
from typing import Any, Optional

from docindex.observability.logging import get_logger
from docindex.providers.base import EmbeddingProvider, LLMProvider, ProviderConfig, ProviderError

logger = get_logger(__name__)

DEFAULT_DIMENSION = 256

_TOKEN_PATTERN = re.compile(r"\w+")


class MockEmbeddingProvider(EmbeddingProvider):
    """Deterministic hashed bag-of-words embedder."""

    def __init__(self, config: Optional[ProviderConfig] = None) -> None:
        super().__init__(config or ProviderConfig(provider_type="mock", model_name="mock-embedding"))
        self._dimension = int(self.config.extra_params.get("dimension", DEFAULT_DIMENSION))
        logger.warning("using_mock_embedding_provider", dimension=self._dimension)

    def _embed(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for token in _TOKEN_PATTERN.findall(text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "little") % self._dimension
            vector[bucket] += 1.0

        magnitude = sum(x * x for x in vector) ** 0.5
        if magnitude == 0:
            return vector
        return [x / magnitude for x in vector]

    async def embed_text(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise ProviderError(message="Cannot embed empty text", provider="mock")
        return self._embed(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_text(text) for text in texts]

    def get_dimension(self) -> int:
        return self._dimension

    def get_max_tokens(self) -> int:
        return 8192


class MockLLMProvider(LLMProvider):
    """Echoes the last user message.

    Image parts are counted rather than decoded, so a multimodal call
    answers with ``"Image description (N image(s)): <prompt>"``.
    """

    def __init__(self, config: Optional[ProviderConfig] = None) -> None:
        super().__init__(config or ProviderConfig(provider_type="mock", model_name="mock-llm"))
        self.calls: list[list[dict[str, Any]]] = []

    async def chat(
        self,
        messages: list[dict[str, Any]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        self.calls.append(messages)

        user_messages = [m for m in messages if m.get("role") == "user"]
        if not user_messages:
            raise ProviderError(message="No user message to answer", provider="mock")

        content = user_messages[-1]["content"]
        if isinstance(content, str):
            for line in content.splitlines():
                if line.startswith("Question:"):
                    return f"Mock answer to: {line[len('Question:'):].strip()}"
            return f"Mock answer to: {content.strip()}"

        texts = [part["text"] for part in content if part.get("type") == "text"]
        image_count = sum(1 for part in content if part.get("type") == "image_url")
        return f"Image description ({image_count} image(s)): {' '.join(texts)}"
