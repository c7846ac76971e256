"""Index layer: vector index, retriever and query engine."""

from docindex.index.query_engine import RetrieverQueryEngine
from docindex.index.retriever import QueryError, VectorIndexRetriever
from docindex.index.vector_store_index import IndexingError, VectorStoreIndex

__all__ = [
    "IndexingError",
    "QueryError",
    "RetrieverQueryEngine",
    "VectorIndexRetriever",
    "VectorStoreIndex",
]
