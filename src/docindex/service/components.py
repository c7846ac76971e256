"""Component initialization service.

Builds the providers, vector store and reader described by an AppConfig.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from docindex.config.schema import AppConfig
from docindex.observability.logging import get_logger
from docindex.providers import create_embedding_provider, create_llm_provider
from docindex.providers.base import EmbeddingProvider, LLMProvider
from docindex.readers import BaseReader, create_reader
from docindex.storage import VectorStore, create_vector_store

logger = get_logger(__name__)


async def _close_all(components: Iterable[Any]) -> None:
    """Close each component. A failing close is logged and the rest still run."""
    for component in components:
        try:
            await component.close()
        except Exception as e:
            logger.warning("component_close_failed", component=type(component).__name__, error=str(e))


@dataclass
class Components:
    """Everything a pipeline needs to talk to the outside world."""

    llm: LLMProvider
    embedding_provider: EmbeddingProvider
    vector_store: VectorStore
    reader: Optional[BaseReader] = None

    async def close(self) -> None:
        """Close every component, in reverse order of creation."""
        if self.reader is not None:
            await self.reader.close()
        await self.vector_store.close()
        await self.embedding_provider.close()
        await self.llm.close()


async def initialize_components(config: AppConfig, with_reader: bool = False) -> Components:
    """Create and initialize the configured components.

    If any step fails, the components created before it are closed and the
    error is re-raised.

    Args:
        config: Application configuration
        with_reader: Also create the configured PDF reader

    Raises:
        ProviderError / ReaderError / StorageError: If a component cannot start
    """
    created: list[Any] = []
    try:
        llm = create_llm_provider(config.llm, config.azure)
        created.append(llm)
        embedding_provider = create_embedding_provider(config.embedding, config.azure)
        created.append(embedding_provider)
        vector_store = create_vector_store(config.vector_store)
        created.append(vector_store)
        await vector_store.initialize()

        reader = create_reader(config.parser) if with_reader else None
    except BaseException as e:
        logger.error("components_initialization_failed", error=str(e), created=len(created))
        await _close_all(reversed(created))
        raise

    logger.info(
        "components_initialized",
        llm=config.llm.provider.value,
        model=config.llm.model_name,
        embedding=config.embedding.provider.value,
        vector_store=config.vector_store.store_type.value,
        reader=config.parser.reader.value if with_reader else None,
    )
    return Components(llm=llm, embedding_provider=embedding_provider, vector_store=vector_store, reader=reader)
