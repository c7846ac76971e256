"""VectorStoreIndex: documents in, searchable nodes out.

How to use:
    index = await VectorStoreIndex.from_documents(documents, embedding_provider)
    engine = index.as_query_engine(llm, similarity_top_k=2)
    response = await engine.query("What is in the chart on page 3?")
"""

from typing import Any, Optional

from docindex.config.schema import ChunkingConfig, QueryConfig
from docindex.core.chunking import split_document
from docindex.entities import Document, TextNode
from docindex.index.query_engine import RetrieverQueryEngine
from docindex.index.retriever import VectorIndexRetriever
from docindex.observability.logging import get_logger
from docindex.providers.base import EmbeddingProvider, LLMProvider
from docindex.storage.base import VectorStore
from docindex.storage.memory import InMemoryVectorStore

logger = get_logger(__name__)

DEFAULT_EMBED_BATCH_SIZE = 32


class VectorStoreIndex:
    """Index of document nodes backed by a vector store."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: Optional[VectorStore] = None,
        chunking: Optional[ChunkingConfig] = None,
        embed_batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store or InMemoryVectorStore()
        self.chunking = chunking or ChunkingConfig()
        self.embed_batch_size = embed_batch_size
        # document id -> ids of nodes stored for it
        self.ref_doc_info: dict[str, list[str]] = {}

    @classmethod
    async def from_documents(
        cls,
        documents: list[Document],
        embedding_provider: EmbeddingProvider,
        vector_store: Optional[VectorStore] = None,
        chunking: Optional[ChunkingConfig] = None,
        embed_batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
    ) -> "VectorStoreIndex":
        """Split, embed and store ``documents``.

        Raises:
            IndexingError: If embedding or storage fails
        """
        index = cls(embedding_provider, vector_store, chunking, embed_batch_size)
        await index.vector_store.initialize()

        nodes: list[TextNode] = []
        for document in documents:
            document_nodes = split_document(document, index.chunking)
            index.ref_doc_info[document.id] = [node.id for node in document_nodes]
            nodes.extend(document_nodes)

        await index._embed_and_store(nodes)
        logger.info("index_built", document_count=len(documents), node_count=len(nodes))
        return index

    async def _embed_and_store(self, nodes: list[TextNode]) -> None:
        total_batches = (len(nodes) + self.embed_batch_size - 1) // self.embed_batch_size

        for i in range(0, len(nodes), self.embed_batch_size):
            batch = nodes[i : i + self.embed_batch_size]
            logger.debug(
                "processing_embedding_batch",
                batch_num=i // self.embed_batch_size + 1,
                total_batches=total_batches,
                batch_size=len(batch),
            )
            try:
                vectors = await self.embedding_provider.embed_batch([node.text for node in batch])
                await self.vector_store.add(batch, vectors)
            except Exception as e:
                raise IndexingError(f"Failed to index {len(batch)} node(s): {e}") from e

    async def insert(self, document: Document) -> int:
        """Add one document; returns the number of nodes stored.

        If a batch fails, nodes already stored for the document are removed
        again before the IndexingError propagates.
        """
        nodes = split_document(document, self.chunking)
        try:
            await self._embed_and_store(nodes)
        except IndexingError:
            removed = await self.vector_store.delete_by_document_id(document.id)
            logger.warning("document_insert_rolled_back", document_id=document.id, removed=removed)
            raise

        self.ref_doc_info.setdefault(document.id, []).extend(node.id for node in nodes)
        logger.info("document_inserted", document_id=document.id, node_count=len(nodes))
        return len(nodes)

    async def delete_ref_doc(self, document_id: str) -> int:
        """Remove every node derived from a document; returns how many were removed."""
        removed = await self.vector_store.delete_by_document_id(document_id)
        self.ref_doc_info.pop(document_id, None)
        logger.info("document_deleted", document_id=document_id, node_count=removed)
        return removed

    async def node_count(self) -> int:
        return await self.vector_store.count()

    def as_retriever(
        self,
        similarity_top_k: int = 2,
        filters: Optional[dict[str, Any]] = None,
    ) -> VectorIndexRetriever:
        return VectorIndexRetriever(
            self.vector_store,
            self.embedding_provider,
            similarity_top_k=similarity_top_k,
            filters=filters,
        )

    def as_query_engine(
        self,
        llm: LLMProvider,
        similarity_top_k: Optional[int] = None,
        query_config: Optional[QueryConfig] = None,
        filters: Optional[dict[str, Any]] = None,
        max_tokens: Optional[int] = None,
    ) -> RetrieverQueryEngine:
        """Build a query engine answering with ``llm`` over this index.

        ``similarity_top_k`` falls back to ``query_config`` only when omitted;
        a non-positive value raises ValueError.
        """
        query_config = query_config or QueryConfig()
        if similarity_top_k is None:
            similarity_top_k = query_config.similarity_top_k
        retriever = self.as_retriever(
            similarity_top_k=similarity_top_k,
            filters=filters,
        )
        return RetrieverQueryEngine(
            retriever,
            llm,
            system_prompt=query_config.system_prompt,
            max_context_length=query_config.max_context_length,
            max_tokens=max_tokens,
        )


class IndexingError(Exception):
    """Exception raised while building or updating an index."""

    pass
