"""Local PDF reader using PyMuPDF.

Produces the same page/image shapes as the LlamaParse reader without any
network access: page text is extracted directly and embedded raster images
are pulled out of the PDF by xref. Layout-heavy pages (tables, charts drawn
as vectors) parse noticeably worse than with LlamaParse.
"""

import asyncio
import hashlib
from pathlib import Path

import fitz  # PyMuPDF

from docindex.entities import (
    Document,
    DocumentType,
    ExtractedImage,
    PageImage,
    ParsedDocument,
    ParsedPage,
)
from docindex.observability.logging import get_logger
from docindex.readers.base import BaseReader, ReaderError

logger = get_logger(__name__)


def _job_id_for(path: Path) -> str:
    """Stable pseudo job id derived from the absolute file path."""
    return hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]


class PyMuPDFReader(BaseReader):
    """Reader that parses PDFs locally with PyMuPDF."""

    reader_name = "pymupdf"

    def _open(self, path: Path) -> fitz.Document:
        try:
            return fitz.open(path)
        except Exception as e:
            raise ReaderError(
                message=f"Failed to open PDF {path}: {e}",
                reader=self.reader_name,
                original_error=e,
            ) from e

    def _parse_sync(self, path: Path) -> ParsedDocument:
        with self._open(path) as doc:
            pages: list[ParsedPage] = []
            for page_index in range(doc.page_count):
                page = doc.load_page(page_index)
                text = page.get_text("text")

                images = []
                for n, info in enumerate(page.get_images(full=True), start=1):
                    xref = info[0]
                    ext = doc.extract_image(xref).get("ext", "png")
                    bbox = page.get_image_bbox(info)
                    images.append(
                        PageImage(
                            name=f"img_p{page_index}_{n}.{ext}",
                            width=info[2],
                            height=info[3],
                            x=bbox.x0 if bbox.is_valid else None,
                            y=bbox.y0 if bbox.is_valid else None,
                            type="embedded",
                        )
                    )

                pages.append(ParsedPage(page=page_index + 1, text=text, md=text, images=images))

        return ParsedDocument(job_id=_job_id_for(path), file_path=str(path), pages=pages)

    async def load_json(self, file_path: str | Path) -> list[ParsedDocument]:
        path = self._check_file(file_path)
        parsed = await asyncio.to_thread(self._parse_sync, path)
        logger.info(
            "parsed_json_loaded",
            job_id=parsed.job_id,
            page_count=len(parsed.pages),
            image_count=parsed.image_count,
        )
        return [parsed]

    async def load_data(self, file_path: str | Path) -> list[Document]:
        parsed = (await self.load_json(file_path))[0]
        text = "\n\n".join(page.text for page in parsed.pages)
        return [
            Document(
                text=text,
                doc_type=DocumentType.TEXT,
                source_path=parsed.file_path,
                metadata={"file_path": parsed.file_path, "job_id": parsed.job_id},
            )
        ]

    def _extract_sync(self, parsed: list[ParsedDocument], target: Path) -> list[ExtractedImage]:
        extracted: list[ExtractedImage] = []
        for result in parsed:
            with self._open(Path(result.file_path)) as doc:
                for page in result.pages:
                    if not page.images:
                        continue
                    page_xrefs = [info[0] for info in doc.load_page(page.page - 1).get_images(full=True)]
                    for image, xref in zip(page.images, page_xrefs):
                        image_path = target / f"{result.job_id}-{image.name}"
                        image_path.write_bytes(doc.extract_image(xref)["image"])
                        extracted.append(
                            ExtractedImage(
                                **image.model_dump(),
                                path=str(image_path),
                                job_id=result.job_id,
                                page_number=page.page,
                                original_file_path=result.file_path,
                            )
                        )
        return extracted

    async def get_images(
        self,
        parsed: list[ParsedDocument],
        download_path: str | Path,
    ) -> list[ExtractedImage]:
        """Write embedded page images to ``<download_path>/<job_id>-<name>``."""
        target = Path(download_path)
        target.mkdir(parents=True, exist_ok=True)

        images = await asyncio.to_thread(self._extract_sync, parsed, target)
        logger.info("images_extracted", count=len(images), download_path=str(target))
        return images
