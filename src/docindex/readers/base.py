"""Abstract base class for document readers.

A reader turns a file into parsed pages (``load_json``), plain documents
(``load_data``) and image files on disk (``get_images``).
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from docindex.entities import Document, ExtractedImage, ParsedDocument


class BaseReader(ABC):
    """Abstract interface for readers."""

    reader_name = "base"

    @abstractmethod
    async def load_data(self, file_path: str | Path) -> list[Document]:
        """Parse a file into documents."""

    @abstractmethod
    async def load_json(self, file_path: str | Path) -> list[ParsedDocument]:
        """Parse a file into page-level JSON results."""

    @abstractmethod
    async def get_images(
        self,
        parsed: list[ParsedDocument],
        download_path: str | Path,
    ) -> list[ExtractedImage]:
        """Write every page image of ``parsed`` into ``download_path``."""

    async def close(self) -> None:
        """Release resources. No-op by default."""

    def _check_file(self, file_path: str | Path) -> Path:
        path = Path(file_path)
        if not path.is_file():
            raise ReaderError(message=f"File not found: {path}", reader=self.reader_name)
        return path


class ReaderError(Exception):
    """Base exception for reader errors."""

    def __init__(self, message: str, reader: str, original_error: Optional[Exception] = None):
        self.message = message
        self.reader = reader
        self.original_error = original_error
        super().__init__(self.message)
