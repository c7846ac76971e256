"""Storage layer: vector stores."""

from typing import Optional

from docindex.config.schema import VectorStoreConfig, VectorStoreType
from docindex.storage.base import StorageError, VectorStore


def create_vector_store(config: Optional[VectorStoreConfig] = None) -> VectorStore:
    """Factory function to create vector stores based on configuration.

    The store still needs ``await store.initialize()``.

    Raises:
        ValueError: If store_type is unknown
        StorageError: If dependencies are missing
    """
    config = config or VectorStoreConfig()

    if config.store_type == VectorStoreType.MEMORY:
        from docindex.storage.memory import InMemoryVectorStore

        return InMemoryVectorStore(config)

    if config.store_type == VectorStoreType.CHROMA:
        try:
            from docindex.storage.chroma import ChromaVectorStore
        except ImportError as e:
            raise StorageError(
                message="Chroma vector store requires the chromadb package. Install with: pip install 'docindex[chroma]'",
                storage_type="chroma",
                original_error=e,
            ) from e

        return ChromaVectorStore(config)

    raise ValueError(
        f"Unknown vector store type: '{config.store_type}'. "
        f"Supported types: memory, chroma"
    )


__all__ = [
    "StorageError",
    "VectorStore",
    "create_vector_store",
]
