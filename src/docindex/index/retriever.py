"""Retriever: embed a query and pull the most similar nodes from a store."""

from typing import Any, Optional

from docindex.entities import NodeWithScore
from docindex.observability.logging import get_logger
from docindex.providers.base import EmbeddingProvider
from docindex.storage.base import VectorStore

logger = get_logger(__name__)


class VectorIndexRetriever:
    """Top-k similarity retriever over a vector store."""

    def __init__(
        self,
        vector_store: VectorStore,
        embedding_provider: EmbeddingProvider,
        similarity_top_k: int = 2,
        filters: Optional[dict[str, Any]] = None,
    ):
        if similarity_top_k <= 0:
            raise ValueError("similarity_top_k must be positive")

        self.vector_store = vector_store
        self.embedding_provider = embedding_provider
        self.similarity_top_k = similarity_top_k
        self.filters = filters

    async def retrieve(self, query: str) -> list[NodeWithScore]:
        """Return the nodes most similar to ``query``.

        Raises:
            QueryError: If the query is empty
        """
        if not query or not query.strip():
            raise QueryError("Query cannot be empty")

        logger.info("retrieve_started", query=query, top_k=self.similarity_top_k)
        query_vector = await self.embedding_provider.embed_text(query)
        results = await self.vector_store.search(
            query_vector,
            top_k=self.similarity_top_k,
            filters=self.filters,
        )
        logger.info("retrieve_completed", query=query, result_count=len(results))
        return results


class QueryError(Exception):
    """Exception raised during retrieval or answer synthesis."""

    pass
