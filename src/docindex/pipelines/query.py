"""Query pipeline: index documents and answer questions about them.

This is the "configure a provider, index one document, ask a question" flow:

    config = load_config()               # AZURE_OPENAI_* picked up here
    response = await run_document_query(config, Path("essay.txt"), "What did the author do?")
    print(response)
"""

from pathlib import Path
from typing import Any, Optional

from docindex.config.schema import AppConfig
from docindex.entities import Document, Response
from docindex.index import QueryError, VectorStoreIndex
from docindex.observability.logging import get_logger
from docindex.providers.base import EmbeddingProvider, LLMProvider
from docindex.readers import SimpleFileReader
from docindex.service import initialize_components
from docindex.storage.base import VectorStore
from docindex.storage.memory import InMemoryVectorStore

logger = get_logger(__name__)


class QueryPipeline:
    """Builds an index over documents and answers questions against it."""

    def __init__(
        self,
        config: AppConfig,
        embedding_provider: EmbeddingProvider,
        llm_provider: LLMProvider,
        vector_store: Optional[VectorStore] = None,
    ):
        """Initialize the query pipeline.

        Args:
            config: Application configuration
            embedding_provider: Provider for node and query embeddings
            llm_provider: Provider for answer synthesis
            vector_store: Storage for embeddings (in-memory when omitted)
        """
        self.config = config
        self.embedding_provider = embedding_provider
        self.llm_provider = llm_provider
        self.vector_store = vector_store
        self.index: Optional[VectorStoreIndex] = None

    async def build_index(self, documents: list[Document]) -> VectorStoreIndex:
        """Index ``documents``, persisting an in-memory store if configured."""
        self.index = await VectorStoreIndex.from_documents(
            documents,
            self.embedding_provider,
            vector_store=self.vector_store,
            chunking=self.config.chunking,
            embed_batch_size=self.config.embedding.batch_size,
        )

        store = self.index.vector_store
        persist_dir = self.config.vector_store.persist_directory
        if persist_dir and isinstance(store, InMemoryVectorStore):
            store.persist(persist_dir)

        return self.index

    async def ask(
        self,
        question: str,
        top_k: Optional[int] = None,
        filters: Optional[dict[str, Any]] = None,
    ) -> Response:
        """Answer ``question`` from the indexed documents.

        ``filters`` restricts retrieval to nodes whose metadata matches exactly,
        e.g. ``{"file_path": "essay.txt"}`` when a persistent store also holds
        nodes from earlier runs.

        Raises:
            QueryError: If no index has been built yet
        """
        if self.index is None:
            raise QueryError("No index built; call build_index() first")

        engine = self.index.as_query_engine(
            self.llm_provider,
            similarity_top_k=top_k,
            query_config=self.config.query,
            filters=filters,
            max_tokens=self.config.llm.max_tokens,
        )
        return await engine.query(question)


async def run_document_query(
    config: AppConfig,
    path: Path,
    question: str,
    top_k: Optional[int] = None,
) -> Response:
    """Load one text file, index it and answer ``question`` about it.

    Retrieval is limited to nodes of ``path``, so a persisted store with other
    files in it does not leak into the answer.
    """
    components = await initialize_components(config)
    try:
        documents = await SimpleFileReader().load_data(path)

        pipeline = QueryPipeline(
            config,
            components.embedding_provider,
            components.llm,
            vector_store=components.vector_store,
        )
        await pipeline.build_index(documents)
        response = await pipeline.ask(question, top_k=top_k, filters={"file_path": str(Path(path))})
    finally:
        await components.close()

    logger.info("document_query_completed", path=str(path), source_count=len(response.source_nodes))
    return response
