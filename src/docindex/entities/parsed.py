"""Parsed PDF entities: pages, page images and extracted image files."""

from typing import Optional

from pydantic import BaseModel, Field


class PageImage(BaseModel):
    """Image found on a parsed page."""

    name: str
    height: Optional[float] = None
    width: Optional[float] = None
    x: Optional[float] = None
    y: Optional[float] = None
    type: Optional[str] = None


class ParsedPage(BaseModel):
    """One page of a parsed document."""

    page: int = Field(..., ge=1, description="1-based page number")
    text: str = ""
    md: str = ""
    images: list[PageImage] = Field(default_factory=list)


class ParsedDocument(BaseModel):
    """JSON result of parsing one file."""

    job_id: str
    file_path: str
    pages: list[ParsedPage] = Field(default_factory=list)

    @property
    def image_count(self) -> int:
        return sum(len(page.images) for page in self.pages)


class ExtractedImage(PageImage):
    """A page image that has been written to disk."""

    path: str
    job_id: str
    page_number: int
    original_file_path: Optional[str] = None
