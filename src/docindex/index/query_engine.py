"""Query engine: retrieval followed by LLM answer synthesis."""

from typing import Optional

from docindex.config.schema import DEFAULT_SYSTEM_PROMPT
from docindex.entities import DocumentType, NodeWithScore, Response
from docindex.index.retriever import QueryError, VectorIndexRetriever
from docindex.observability.logging import get_logger
from docindex.providers.base import LLMProvider

logger = get_logger(__name__)

NO_RESULTS_ANSWER = "I couldn't find any relevant information to answer your question."


def _source_label(result: NodeWithScore) -> str:
    metadata = result.node.metadata
    if metadata.get("doc_type") == DocumentType.IMAGE.value and metadata.get("image_path"):
        return f"image {metadata['image_path']}"
    if metadata.get("page_number") is not None:
        return f"{metadata.get('file_path', 'document')} page {metadata['page_number']}"
    return metadata.get("file_path") or metadata.get("file_name") or "document"


def build_context(results: list[NodeWithScore], max_context_length: int) -> tuple[str, list[NodeWithScore]]:
    """Pack node texts into a context block, stopping at ``max_context_length``.

    The first node is always included, truncated if necessary.
    """
    parts: list[str] = []
    used: list[NodeWithScore] = []
    total_length = 0

    for result in results:
        text = result.node.text
        if total_length + len(text) > max_context_length:
            if parts:
                break
            text = text[:max_context_length]
        parts.append(f"[Source: {_source_label(result)}]\n{text}")
        used.append(result)
        total_length += len(text)

    return "\n\n".join(parts), used


class RetrieverQueryEngine:
    """Answers natural-language questions against an index."""

    def __init__(
        self,
        retriever: VectorIndexRetriever,
        llm: LLMProvider,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_context_length: int = 6000,
        max_tokens: Optional[int] = None,
    ):
        if llm is None:
            raise QueryError("A query engine needs an LLM provider")

        self.retriever = retriever
        self.llm = llm
        self.system_prompt = system_prompt
        self.max_context_length = max_context_length
        self.max_tokens = max_tokens

    async def query(self, query: str) -> Response:
        """Retrieve context for ``query`` and ask the LLM to answer it.

        When nothing is retrieved the LLM is not called.
        """
        logger.info("query_started", query=query)
        results = await self.retriever.retrieve(query)

        if not results:
            logger.warning("no_results_found", query=query)
            return Response(response=NO_RESULTS_ANSWER, source_nodes=[])

        context, used = build_context(results, self.max_context_length)
        prompt = f"Context:\n{context}\n\nQuestion: {query}\n\nAnswer:"

        answer = await self.llm.complete(
            prompt,
            system_prompt=self.system_prompt,
            max_tokens=self.max_tokens,
        )

        logger.info("query_completed", query=query, source_count=len(used))
        return Response(response=answer.strip(), source_nodes=used)
