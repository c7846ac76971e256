"""Plain text / markdown file reader."""

from pathlib import Path

from docindex.entities import Document, DocumentType, ExtractedImage, ParsedDocument, ParsedPage
from docindex.observability.logging import get_logger
from docindex.readers.base import BaseReader, ReaderError

logger = get_logger(__name__)

_TYPE_MAP = {
    ".md": DocumentType.MARKDOWN,
    ".markdown": DocumentType.MARKDOWN,
    ".txt": DocumentType.TEXT,
    ".text": DocumentType.TEXT,
}


class SimpleFileReader(BaseReader):
    """Read a UTF-8 text file as a single document."""

    reader_name = "file"

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def _read(self, file_path: str | Path) -> tuple[Path, str]:
        path = self._check_file(file_path)
        try:
            return path, path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise ReaderError(
                message=f"Failed to read file {path}: {e}",
                reader=self.reader_name,
                original_error=e,
            ) from e

    async def load_data(self, file_path: str | Path) -> list[Document]:
        path, text = self._read(file_path)
        document = Document(
            text=text,
            doc_type=_TYPE_MAP.get(path.suffix.lower(), DocumentType.UNKNOWN),
            source_path=str(path),
            metadata={"file_path": str(path), "file_name": path.name, "file_size": path.stat().st_size},
        )
        logger.info("file_loaded", path=str(path), chars=len(text))
        return [document]

    async def load_json(self, file_path: str | Path) -> list[ParsedDocument]:
        """Expose the whole file as one page."""
        path, text = self._read(file_path)
        return [
            ParsedDocument(
                job_id=path.stem,
                file_path=str(path),
                pages=[ParsedPage(page=1, text=text, md=text)],
            )
        ]

    async def get_images(
        self,
        parsed: list[ParsedDocument],
        download_path: str | Path,
    ) -> list[ExtractedImage]:
        """Text files carry no images."""
        return []
