"""Readers: turn files into documents, parsed pages and image files."""

from typing import Optional

import httpx

from docindex.config.schema import ParserConfig, ReaderType
from docindex.readers.base import BaseReader, ReaderError
from docindex.readers.file import SimpleFileReader


def create_reader(
    config: ParserConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BaseReader:
    """Factory function to create PDF readers based on configuration.

    Raises:
        ValueError: If the reader type is unknown
        ReaderError: If the reader cannot be initialized (e.g. missing API key)
    """
    if config.reader == ReaderType.LLAMA_PARSE:
        from docindex.readers.llama_parse import LlamaParseReader

        return LlamaParseReader.from_config(config, transport=transport)

    if config.reader == ReaderType.PYMUPDF:
        try:
            from docindex.readers.pymupdf import PyMuPDFReader
        except ImportError as e:
            raise ReaderError(
                message="PyMuPDF reader requires the pymupdf package",
                reader="pymupdf",
                original_error=e,
            ) from e

        return PyMuPDFReader()

    raise ValueError(
        f"Unknown reader type: '{config.reader}'. "
        f"Supported types: llama_parse, pymupdf"
    )


__all__ = [
    "BaseReader",
    "ReaderError",
    "SimpleFileReader",
    "create_reader",
]
