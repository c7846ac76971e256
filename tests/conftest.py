"""Shared fixtures: sample files, offline providers and config."""

from pathlib import Path

import fitz
import pytest

from docindex.config.schema import (
    AppConfig,
    ChunkingConfig,
    EmbeddingConfig,
    LLMConfig,
    ParserConfig,
    QueryConfig,
)
from docindex.providers.mock import MockEmbeddingProvider, MockLLMProvider


def png_bytes(color: tuple[int, int, int] = (255, 0, 0), size: int = 16) -> bytes:
    """Return a small solid-colour PNG."""
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, size, size), False)
    pix.set_rect(pix.irect, color)
    return pix.tobytes("png")


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    path = tmp_path / "chart.png"
    path.write_bytes(png_bytes())
    return path


@pytest.fixture
def sample_pdf(tmp_path: Path) -> Path:
    """Two-page PDF: revenue text plus one image on page 1, headcount text on page 2."""
    path = tmp_path / "report.pdf"
    doc = fitz.open()

    page = doc.new_page()
    page.insert_text((72, 72), "Quarterly revenue grew in every region.")
    page.insert_image(fitz.Rect(72, 100, 172, 200), stream=png_bytes((255, 0, 0)))

    page = doc.new_page()
    page.insert_text((72, 72), "Headcount stayed flat across the year.")

    doc.save(path)
    doc.close()
    return path


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "essay.txt"
    path.write_text(
        "Growing up, the author wrote short stories and programmed an IBM 1401.\n\n"
        "Later the author studied painting in Florence before returning to software.",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def mock_llm() -> MockLLMProvider:
    return MockLLMProvider()


@pytest.fixture
def mock_embedder() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Offline configuration: mock models, PyMuPDF reader, temp image folder."""
    return AppConfig(
        llm=LLMConfig(provider="mock"),
        embedding=EmbeddingConfig(provider="mock", batch_size=4),
        parser=ParserConfig(reader="pymupdf", image_dir=tmp_path / "images"),
        chunking=ChunkingConfig(chunk_size=200, chunk_overlap=20, min_chunk_size=1),
        query=QueryConfig(similarity_top_k=2),
    )
