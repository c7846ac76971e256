"""Document entity - represents a unit of ingestible text."""

from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class DocumentType(str, Enum):
    """Where a document's text came from."""

    TEXT = "text"
    MARKDOWN = "markdown"
    PDF_PAGE = "pdf_page"
    IMAGE = "image"
    UNKNOWN = "unknown"


class Document(BaseModel):
    """Free text plus an identifier and metadata.

    Text may be empty: a scanned or image-only PDF page still maps to a
    document, it simply produces no nodes when indexed.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    text: str = ""
    doc_type: DocumentType = DocumentType.UNKNOWN
    source_path: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()
