"""Text chunking utilities.

Splits documents into embedding-sized nodes with overlapping windows so a
sentence cut at a boundary still appears whole in one of its neighbours.
"""

from collections.abc import Iterator

from docindex.config.schema import ChunkingConfig
from docindex.entities import Document, TextNode
from docindex.observability.logging import get_logger

logger = get_logger(__name__)


def chunk_text(
    text: str,
    chunk_size: int,
    chunk_overlap: int,
    min_chunk_size: int,
) -> Iterator[tuple[str, int, int]]:
    """Split text into overlapping chunks.

    Args:
        text: Text to chunk
        chunk_size: Target chunk size in characters
        chunk_overlap: Overlap between chunks in characters
        min_chunk_size: Minimum chunk size (discard smaller chunks)

    Yields:
        Tuples of (chunk_text, start_char, end_char)
    """
    if not text or not text.strip():
        return

    text_length = len(text)
    start = 0

    while start < text_length:
        end = min(start + chunk_size, text_length)
        chunk = text[start:end].strip()

        if len(chunk) >= min_chunk_size:
            yield (chunk, start, end)

        if end == text_length:
            break

        new_start = end - chunk_overlap
        if new_start <= start:
            # Overlap >= chunk size would loop forever.
            logger.warning(
                "chunking_no_progress",
                text_length=text_length,
                chunk_size=chunk_size,
                chunk_overlap=chunk_overlap,
                start=start,
            )
            break

        start = new_start


def split_document(document: Document, config: ChunkingConfig) -> list[TextNode]:
    """Split a document into text nodes.

    Node metadata is a copy of the document metadata. Documents with empty
    text produce no nodes.
    """
    nodes = [
        TextNode(
            document_id=document.id,
            text=text_content,
            index=idx,
            start_char=start_char,
            end_char=end_char,
            metadata={**document.metadata, "doc_type": document.doc_type.value},
        )
        for idx, (text_content, start_char, end_char) in enumerate(
            chunk_text(
                document.text,
                config.chunk_size,
                config.chunk_overlap,
                config.min_chunk_size,
            )
        )
    ]

    logger.debug(
        "document_split",
        document_id=document.id,
        doc_type=document.doc_type.value,
        node_count=len(nodes),
    )
    return nodes
