"""Ingestion pipeline: parse a PDF, extract its images and describe them.

Flow:
1. Reader parses the PDF into pages (JSON)
2. Reader writes every page image into the image folder
3. Each image is sent to a multimodal model, one at a time, for alt text
4. Pages and alt texts become documents ready for indexing

How to use:
    pipeline = IngestionPipeline(config, reader, llm)
    result = await pipeline.load_pdf(Path("report.pdf"), Path("images"))
    index = await VectorStoreIndex.from_documents(result.documents, embedding_provider)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from docindex.config.schema import AppConfig
from docindex.entities import Document, DocumentType, ExtractedImage, ImageNode, ParsedDocument, Response
from docindex.observability.logging import get_logger
from docindex.pipelines.query import QueryPipeline
from docindex.providers.base import LLMProvider
from docindex.providers.multimodal import describe_image
from docindex.readers.base import BaseReader
from docindex.service import initialize_components

logger = get_logger(__name__)


@dataclass
class IngestionResult:
    """Result of ingesting one PDF."""

    documents: list[Document]
    images: list[ExtractedImage] = field(default_factory=list)
    parsed: list[ParsedDocument] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return sum(len(result.pages) for result in self.parsed)


def page_documents(parsed: list[ParsedDocument]) -> list[Document]:
    """Map every parsed page to one document carrying its page number."""
    return [
        Document(
            text=page.text,
            doc_type=DocumentType.PDF_PAGE,
            source_path=result.file_path,
            metadata={
                "page_number": page.page,
                "file_path": result.file_path,
                "job_id": result.job_id,
            },
        )
        for result in parsed
        for page in result.pages
    ]


async def describe_images(
    images: list[ExtractedImage],
    llm: LLMProvider,
    prompt: str,
) -> list[Document]:
    """Turn each extracted image into an alt-text document.

    Images are described sequentially, in order. The first failure
    propagates; no partial result is returned.
    """
    documents: list[Document] = []
    for position, image in enumerate(images, start=1):
        logger.info(
            "describing_image",
            image_path=image.path,
            page_number=image.page_number,
            position=position,
            total=len(images),
        )
        alt_text = await describe_image(llm, ImageNode(image_path=image.path), prompt)
        documents.append(
            Document(
                text=alt_text,
                doc_type=DocumentType.IMAGE,
                source_path=image.original_file_path,
                metadata={
                    "image_path": image.path,
                    "page_number": image.page_number,
                    "file_path": image.original_file_path,
                    "job_id": image.job_id,
                },
            )
        )
    return documents


class IngestionPipeline:
    """Pipeline turning a PDF into page and image documents."""

    def __init__(self, config: AppConfig, reader: BaseReader, llm_provider: Optional[LLMProvider] = None):
        """Initialize the ingestion pipeline.

        Args:
            config: Application configuration
            reader: Reader used to parse the PDF and extract its images
            llm_provider: Multimodal model for alt text; required when describing
        """
        self.config = config
        self.reader = reader
        self.llm_provider = llm_provider

    async def load_pdf(
        self,
        pdf_path: Path,
        image_dir: Optional[Path] = None,
        describe: bool = True,
    ) -> IngestionResult:
        """Parse ``pdf_path`` and build documents from its pages and images.

        Args:
            pdf_path: PDF to parse
            image_dir: Folder for extracted images (config default when None)
            describe: Generate alt-text documents for the images

        Raises:
            IngestionError: If parsing, extraction or description fails
        """
        image_dir = image_dir or self.config.parser.image_dir
        if describe and self.llm_provider is None:
            raise IngestionError("Describing images requires an LLM provider")

        logger.info("ingestion_started", pdf_path=str(pdf_path), image_dir=str(image_dir), describe=describe)

        try:
            parsed = await self.reader.load_json(pdf_path)
            images = await self.reader.get_images(parsed, image_dir)

            documents = page_documents(parsed)
            if describe:
                documents.extend(
                    await describe_images(images, self.llm_provider, self.config.parser.alt_text_prompt)
                )
        except IngestionError:
            raise
        except Exception as e:
            logger.error("ingestion_failed", pdf_path=str(pdf_path), error=str(e))
            raise IngestionError(f"Failed to ingest {pdf_path}: {e}") from e

        result = IngestionResult(documents=documents, images=images, parsed=parsed)
        logger.info(
            "ingestion_completed",
            pdf_path=str(pdf_path),
            page_count=result.page_count,
            image_count=len(images),
            document_count=len(documents),
        )
        return result


async def run_pdf_query(
    config: AppConfig,
    pdf_path: Path,
    question: str,
    image_dir: Optional[Path] = None,
    top_k: Optional[int] = None,
) -> Response:
    """Parse a PDF, describe its images, index everything and answer ``question``.

    Retrieval is limited to nodes of ``pdf_path`` (pages and image alt text).
    """
    components = await initialize_components(config, with_reader=True)
    try:
        ingestion = IngestionPipeline(config, components.reader, components.llm)
        result = await ingestion.load_pdf(pdf_path, image_dir)

        pipeline = QueryPipeline(
            config,
            components.embedding_provider,
            components.llm,
            vector_store=components.vector_store,
        )
        await pipeline.build_index(result.documents)
        response = await pipeline.ask(question, top_k=top_k, filters={"file_path": str(Path(pdf_path))})
    finally:
        await components.close()

    return response


class IngestionError(Exception):
    """Exception raised during document ingestion."""

    pass
