"""In-memory vector store.

Keeps every node and vector in a dict and scores with brute-force cosine
similarity. Fine for a handful of documents; ``persist`` writes the whole
store to a JSON file so an index can be reloaded without re-embedding.
"""

import json
from pathlib import Path
from typing import Any, Optional

from docindex.config.schema import VectorStoreConfig
from docindex.entities import NodeWithScore, TextNode
from docindex.observability.logging import get_logger
from docindex.storage.base import StorageError, VectorStore

logger = get_logger(__name__)

PERSIST_FILENAME = "vector_store.json"


def cosine_similarity(vec1: list[float], vec2: list[float]) -> float:
    """Calculate cosine similarity between two vectors."""
    if len(vec1) != len(vec2):
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    magnitude1 = sum(a * a for a in vec1) ** 0.5
    magnitude2 = sum(b * b for b in vec2) ** 0.5

    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0

    return dot_product / (magnitude1 * magnitude2)


def _matches(metadata: dict[str, Any], filters: Optional[dict[str, Any]]) -> bool:
    if not filters:
        return True
    return all(metadata.get(key) == value for key, value in filters.items())


class InMemoryVectorStore(VectorStore):
    """In-memory vector store implementation."""

    def __init__(self, config: Optional[VectorStoreConfig] = None) -> None:
        super().__init__(config)
        # node id -> (node, vector), insertion ordered
        self.entries: dict[str, tuple[TextNode, list[float]]] = {}

    async def initialize(self) -> None:
        """Load a persisted store when a persist directory is configured."""
        directory = self.config.persist_directory
        if directory and (directory / PERSIST_FILENAME).exists():
            self._load(directory / PERSIST_FILENAME)

    async def add(self, nodes: list[TextNode], embeddings: list[list[float]]) -> None:
        self._check_lengths(nodes, embeddings, "memory")
        for node, vector in zip(nodes, embeddings):
            self.entries[node.id] = (node, vector)

    async def search(
        self,
        query_vector: list[float],
        top_k: int = 2,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[NodeWithScore]:
        results = [
            NodeWithScore(node=node, score=cosine_similarity(query_vector, vector))
            for node, vector in self.entries.values()
            if _matches(node.metadata, filters)
        ]
        results.sort(key=lambda x: x.score, reverse=True)
        return results[:top_k]

    async def delete_by_document_id(self, document_id: str) -> int:
        to_delete = [node_id for node_id, (node, _) in self.entries.items() if node.document_id == document_id]
        for node_id in to_delete:
            del self.entries[node_id]
        return len(to_delete)

    async def count(self) -> int:
        return len(self.entries)

    async def close(self) -> None:
        self.entries.clear()

    def persist(self, persist_dir: str | Path) -> Path:
        """Write all nodes and vectors to ``<persist_dir>/vector_store.json``.

        Raises:
            StorageError: If the file cannot be written
        """
        path = Path(persist_dir) / PERSIST_FILENAME
        payload = [
            {"node": node.model_dump(mode="json"), "embedding": vector}
            for node, vector in self.entries.values()
        ]
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as e:
            raise StorageError(
                message=f"Failed to persist vector store to {path}: {e}",
                storage_type="memory",
                original_error=e,
            ) from e

        logger.info("vector_store_persisted", path=str(path), node_count=len(payload))
        return path

    def _load(self, path: Path) -> None:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(
                message=f"Failed to load vector store from {path}: {e}",
                storage_type="memory",
                original_error=e,
            ) from e

        for entry in payload:
            node = TextNode.model_validate(entry["node"])
            self.entries[node.id] = (node, entry["embedding"])
        logger.info("vector_store_loaded", path=str(path), node_count=len(self.entries))

    @classmethod
    def from_persist_path(cls, persist_dir: str | Path) -> "InMemoryVectorStore":
        """Load a store previously written by :meth:`persist`."""
        store = cls(VectorStoreConfig(persist_directory=Path(persist_dir)))
        store._load(Path(persist_dir) / PERSIST_FILENAME)
        return store
