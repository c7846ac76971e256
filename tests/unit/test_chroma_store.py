"""Unit tests for ChromaVectorStore."""

import pytest

pytest.importorskip("chromadb")

from docindex.config.schema import VectorStoreConfig  # noqa: E402
from docindex.entities import TextNode  # noqa: E402
from docindex.storage.base import StorageError  # noqa: E402
from docindex.storage.chroma import ChromaVectorStore, sanitize_collection_name  # noqa: E402


def make_node(text: str, document_id: str = "doc-1", index: int = 0, **metadata) -> TextNode:
    return TextNode(
        document_id=document_id,
        text=text,
        index=index,
        start_char=0,
        end_char=len(text),
        metadata=metadata,
    )


class TestSanitizeCollectionName:
    """Test sanitize_collection_name function."""

    def test_valid_name_unchanged(self):
        assert sanitize_collection_name("docindex") == "docindex"

    def test_invalid_characters(self):
        assert sanitize_collection_name("my docs/2024") == "my_docs_2024"

    def test_short_name_padded(self):
        assert len(sanitize_collection_name("a")) >= 3

    def test_long_name_truncated(self):
        assert len(sanitize_collection_name("x" * 100)) == 63


@pytest.mark.asyncio
class TestChromaVectorStore:
    """Test ChromaVectorStore functionality."""

    @pytest.fixture
    async def store(self, tmp_path):
        """Create a ChromaVectorStore instance for testing."""
        store = ChromaVectorStore(
            VectorStoreConfig(store_type="chroma", collection_name="test", persist_directory=tmp_path)
        )
        await store.initialize()
        yield store
        await store.close()

    async def test_initialization(self, store, tmp_path):
        assert store.collection_name == "test"
        assert store.persist_directory == str(tmp_path)
        assert await store.count() == 0

    async def test_use_before_initialize(self, tmp_path):
        store = ChromaVectorStore(VectorStoreConfig(store_type="chroma", persist_directory=tmp_path))

        with pytest.raises(StorageError, match="before initialize"):
            await store.count()

    async def test_add_and_search(self, store):
        """Test that node fields and metadata survive a round trip through Chroma."""
        nodes = [
            make_node("revenue chart", page_number=1, image_path="images/a.png", extra=None),
            make_node("headcount table", index=1, page_number=2),
        ]
        await store.add(nodes, [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])

        results = await store.search([1.0, 0.0, 0.0], top_k=5)

        assert len(results) == 2
        top = results[0]
        assert top.node.id == nodes[0].id
        assert top.node.document_id == "doc-1"
        assert top.node.end_char == len("revenue chart")
        assert top.node.metadata == {"page_number": 1, "image_path": "images/a.png"}
        assert top.score == pytest.approx(1.0, abs=1e-5)

    async def test_search_with_filters(self, store):
        await store.add(
            [make_node("a", page_number=1, doc_type="pdf_page"), make_node("b", index=1, page_number=2, doc_type="image")],
            [[1.0, 0.0], [1.0, 0.0]],
        )

        results = await store.search([1.0, 0.0], top_k=5, filters={"page_number": 2, "doc_type": "image"})

        assert [r.node.text for r in results] == ["b"]

    async def test_search_empty(self, store):
        assert await store.search([1.0, 0.0], top_k=3) == []

    async def test_delete_by_document_id(self, store):
        await store.add(
            [make_node("a"), make_node("b", index=1), make_node("c", document_id="doc-2")],
            [[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]],
        )

        assert await store.delete_by_document_id("doc-1") == 2
        assert await store.count() == 1

    async def test_length_mismatch(self, store):
        with pytest.raises(StorageError, match="length mismatch"):
            await store.add([make_node("a")], [])
