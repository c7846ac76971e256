"""Abstract base class for vector storage backends.

Why this exists:
- Allows swapping between the in-memory store and Chroma
- Keeps the index independent from where vectors live

How to extend:
1. Subclass VectorStore
2. Implement all abstract methods
3. Register in create_vector_store
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from docindex.config.schema import VectorStoreConfig
from docindex.entities import NodeWithScore, TextNode


class VectorStore(ABC):
    """Abstract interface for vector storage backends.

    Implementations must handle:
    - Storing node embeddings together with node text and metadata
    - Similarity search with optional exact-match metadata filters
    - Deleting everything derived from one document
    """

    def __init__(self, config: Optional[VectorStoreConfig] = None) -> None:
        """Initialize storage with configuration."""
        self.config = config or VectorStoreConfig()

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the vector store (create collections, load files, etc.)."""

    @abstractmethod
    async def add(self, nodes: list[TextNode], embeddings: list[list[float]]) -> None:
        """Store nodes with their embeddings.

        Raises:
            StorageError: If the lists differ in length or storage fails
        """

    @abstractmethod
    async def search(
        self,
        query_vector: list[float],
        top_k: int = 2,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[NodeWithScore]:
        """Return up to ``top_k`` nodes, highest score first."""

    @abstractmethod
    async def delete_by_document_id(self, document_id: str) -> int:
        """Delete all nodes of a document and return how many were removed."""

    @abstractmethod
    async def count(self) -> int:
        """Return total number of stored nodes."""

    @abstractmethod
    async def close(self) -> None:
        """Close connections and cleanup resources."""

    def _check_lengths(self, nodes: list[TextNode], embeddings: list[list[float]], storage_type: str) -> None:
        if len(nodes) != len(embeddings):
            raise StorageError(
                message=f"Nodes and embeddings length mismatch: {len(nodes)} vs {len(embeddings)}",
                storage_type=storage_type,
            )


class StorageError(Exception):
    """Base exception for storage errors."""

    def __init__(self, message: str, storage_type: str, original_error: Exception | None = None):
        self.message = message
        self.storage_type = storage_type
        self.original_error = original_error
        super().__init__(self.message)
