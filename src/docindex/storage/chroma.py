"""Chroma vector store implementation.

Persists nodes in a local ChromaDB collection so an index survives between
runs without re-embedding. Chroma only accepts scalar metadata values, so
node metadata is flattened: ``None`` is dropped and anything that is not a
str/int/float/bool is stored as its string form.

Trade-offs:
- Not suitable for very large datasets (millions of vectors)
- Single-node only (no distributed mode)
"""

import re
from typing import Any, Optional

import chromadb

from docindex.config.schema import VectorStoreConfig
from docindex.entities import NodeWithScore, TextNode
from docindex.observability.logging import get_logger
from docindex.storage.base import StorageError, VectorStore

logger = get_logger(__name__)

# Node fields kept next to the user metadata
_RESERVED = ("_document_id", "_index", "_start_char", "_end_char")


def sanitize_collection_name(name: str) -> str:
    """Sanitize collection name for Chroma compatibility.

    Chroma collection names must be 3-63 characters long, start and end with
    an alphanumeric character and contain only alphanumerics, underscores or
    hyphens.
    """
    sanitized = re.sub(r"[^a-zA-Z0-9_-]", "_", name)

    if sanitized and not sanitized[0].isalnum():
        sanitized = "c" + sanitized
    if sanitized and not sanitized[-1].isalnum():
        sanitized = sanitized + "0"
    if len(sanitized) < 3:
        sanitized = sanitized + "_default"

    return sanitized[:63]


def _flatten_metadata(node: TextNode) -> dict[str, Any]:
    metadata: dict[str, Any] = {}
    for key, value in node.metadata.items():
        if value is None:
            continue
        metadata[key] = value if isinstance(value, (str, int, float, bool)) else str(value)

    metadata.update(
        {
            "_document_id": node.document_id,
            "_index": node.index,
            "_start_char": node.start_char,
            "_end_char": node.end_char,
        }
    )
    return metadata


def _build_where(filters: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if not filters:
        return None
    if len(filters) == 1:
        return dict(filters)
    return {"$and": [{key: value} for key, value in filters.items()]}


class ChromaVectorStore(VectorStore):
    """Chroma vector store using a persistent client and cosine distance.

    Example:
        config = VectorStoreConfig(
            store_type="chroma",
            collection_name="docindex",
            persist_directory=Path("./chroma_db"),
        )
        store = ChromaVectorStore(config)
        await store.initialize()
    """

    def __init__(self, config: Optional[VectorStoreConfig] = None) -> None:
        super().__init__(config)
        self.persist_directory = str(self.config.persist_directory or "./chroma_db")
        self.collection_name = sanitize_collection_name(self.config.collection_name)
        self._client = None
        self._collection = None

    async def initialize(self) -> None:
        """Create the client and the collection.

        Raises:
            StorageError: If initialization fails
        """
        try:
            self._client = chromadb.PersistentClient(path=self.persist_directory)
            self._collection = self._client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as e:
            raise StorageError(
                message=f"Failed to initialize Chroma collection '{self.collection_name}': {e}",
                storage_type="chroma",
                original_error=e,
            ) from e

        logger.info(
            "chroma_vector_store_initialized",
            persist_directory=self.persist_directory,
            collection_name=self.collection_name,
        )

    @property
    def collection(self):
        if self._collection is None:
            raise StorageError(message="Chroma store used before initialize()", storage_type="chroma")
        return self._collection

    async def add(self, nodes: list[TextNode], embeddings: list[list[float]]) -> None:
        self._check_lengths(nodes, embeddings, "chroma")
        if not nodes:
            return

        try:
            self.collection.add(
                ids=[node.id for node in nodes],
                embeddings=embeddings,
                metadatas=[_flatten_metadata(node) for node in nodes],
                documents=[node.text for node in nodes],
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(
                message=f"Failed to add nodes: {e}",
                storage_type="chroma",
                original_error=e,
            ) from e

        logger.info("nodes_added", count=len(nodes), collection=self.collection_name)

    async def search(
        self,
        query_vector: list[float],
        top_k: int = 2,
        filters: Optional[dict[str, Any]] = None,
    ) -> list[NodeWithScore]:
        collection = self.collection
        n_results = min(top_k, collection.count())
        if n_results == 0:
            return []

        try:
            query_results = collection.query(
                query_embeddings=[query_vector],
                n_results=n_results,
                where=_build_where(filters),
            )
        except Exception as e:
            raise StorageError(
                message=f"Failed to search: {e}",
                storage_type="chroma",
                original_error=e,
            ) from e

        results: list[NodeWithScore] = []
        if query_results["ids"] and query_results["ids"][0]:
            for i, node_id in enumerate(query_results["ids"][0]):
                metadata = dict(query_results["metadatas"][0][i])
                distance = query_results["distances"][0][i]
                node = TextNode(
                    id=node_id,
                    document_id=metadata["_document_id"],
                    text=query_results["documents"][0][i],
                    index=metadata["_index"],
                    start_char=metadata["_start_char"],
                    end_char=metadata["_end_char"],
                    metadata={k: v for k, v in metadata.items() if k not in _RESERVED},
                )
                results.append(NodeWithScore(node=node, score=1.0 - distance))

        results.sort(key=lambda x: x.score, reverse=True)
        return results

    async def delete_by_document_id(self, document_id: str) -> int:
        try:
            existing = self.collection.get(where={"_document_id": document_id})
            ids = existing["ids"]
            if ids:
                self.collection.delete(ids=ids)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(
                message=f"Failed to delete nodes of document {document_id}: {e}",
                storage_type="chroma",
                original_error=e,
            ) from e
        return len(ids)

    async def count(self) -> int:
        return self.collection.count()

    async def close(self) -> None:
        self._collection = None
        self._client = None
