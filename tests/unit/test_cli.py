"""Unit tests for the docindex CLI, run fully offline with mock providers."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from docindex.interfaces.cli import app, console

runner = CliRunner()


@pytest.fixture(autouse=True)
def offline_env(tmp_path, monkeypatch):
    """Mock models, local PDF parsing, and no config file from the working tree."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DOCINDEX_LLM__PROVIDER", "mock")
    monkeypatch.setenv("DOCINDEX_EMBEDDING__PROVIDER", "mock")
    monkeypatch.setenv("DOCINDEX_PARSER__READER", "pymupdf")
    monkeypatch.setenv("DOCINDEX_PARSER__IMAGE_DIR", str(tmp_path / "images"))
    monkeypatch.setattr(console, "width", 200)
    with patch("docindex.interfaces.cli.configure_from_config"):
        yield


def test_ask(text_file):
    result = runner.invoke(app, ["ask", str(text_file), "What did the author do?", "--sources"])

    assert result.exit_code == 0, result.output
    assert "Mock answer to: What did the author do?" in result.output
    assert "essay.txt" in result.output


def test_ask_missing_file(tmp_path):
    result = runner.invoke(app, ["ask", str(tmp_path / "missing.txt"), "Anything?"])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "File not found" in result.output


def test_extract_images(sample_pdf, tmp_path):
    output_dir = tmp_path / "out"

    result = runner.invoke(app, ["extract-images", str(sample_pdf), "--output-dir", str(output_dir)])

    assert result.exit_code == 0, result.output
    assert "Extracted 1 image(s) from 2 page(s)" in result.output
    assert len(list(output_dir.iterdir())) == 1


def test_extract_images_without_description(sample_pdf, tmp_path):
    result = runner.invoke(app, ["extract-images", str(sample_pdf), "--no-describe"])

    assert result.exit_code == 0, result.output
    assert "Alt text" not in result.output
    assert len(list((tmp_path / "images").iterdir())) == 1


def test_extract_images_none_found(tmp_path):
    import fitz

    pdf = tmp_path / "plain.pdf"
    doc = fitz.open()
    doc.new_page().insert_text((72, 72), "No pictures here.")
    doc.save(pdf)
    doc.close()

    result = runner.invoke(app, ["extract-images", str(pdf)])

    assert result.exit_code == 0, result.output
    assert "No images found" in result.output


def test_ask_pdf(sample_pdf):
    result = runner.invoke(app, ["ask-pdf", str(sample_pdf), "What does the chart show?", "-k", "3", "-s"])

    assert result.exit_code == 0, result.output
    assert "Mock answer to: What does the chart show?" in result.output


def test_info_masks_secrets(monkeypatch):
    monkeypatch.setenv("AZURE_OPENAI_KEY", "supersecretkey")

    result = runner.invoke(app, ["info"])

    assert result.exit_code == 0, result.output
    assert "supersecretkey" not in result.output
    assert "supe****" in result.output
    assert "pymupdf" in result.output
