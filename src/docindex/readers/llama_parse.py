"""LlamaParse reader - PDF parsing through the LlamaCloud REST API.

Flow for one file:
1. POST the file to ``/parsing/upload`` and receive a job id
2. Poll ``/parsing/job/{id}`` until the job succeeds, fails or times out
3. Fetch ``/result/json`` (pages) or ``/result/{markdown,text}``
4. Download page images from ``/result/image/{name}``

Trade-offs:
- Data is sent to a third-party service
- Requires LLAMA_CLOUD_API_KEY
- Much better layout, table and image handling than local text extraction
"""

import asyncio
import mimetypes
from pathlib import Path
from typing import Any, Optional

import httpx

from docindex.config.schema import LlamaCloudSettings, ParserConfig, ResultType
from docindex.entities import Document, DocumentType, ExtractedImage, ParsedDocument
from docindex.observability.logging import get_logger
from docindex.readers.base import BaseReader, ReaderError

logger = get_logger(__name__)

API_PREFIX = "/api/v1/parsing"

_FAILED_STATUSES = {"ERROR", "CANCELED", "CANCELLED"}


class LlamaParseReader(BaseReader):
    """Reader backed by the LlamaParse service.

    Example:
        reader = LlamaParseReader(api_key="llx-...")
        parsed = await reader.load_json("report.pdf")
        images = await reader.get_images(parsed, "images")
    """

    reader_name = "llama_parse"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.cloud.llamaindex.ai",
        result_type: ResultType = ResultType.MARKDOWN,
        language: str = "en",
        check_interval: float = 1.0,
        max_timeout: float = 2000.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the reader.

        Args:
            api_key: LlamaCloud API key
            base_url: LlamaCloud base URL
            result_type: Text flavour for ``load_data``
            language: Document language hint
            check_interval: Seconds between job status polls
            max_timeout: Seconds to wait for a job before giving up
            transport: Optional httpx transport, used by tests

        Raises:
            ReaderError: If the API key is missing
        """
        if not api_key:
            raise ReaderError(
                message="LlamaParse requires an API key. Set LLAMA_CLOUD_API_KEY",
                reader=self.reader_name,
            )

        self.result_type = ResultType(result_type)
        self.language = language
        self.check_interval = check_interval
        self.max_timeout = max_timeout
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + API_PREFIX,
            headers={"Authorization": f"Bearer {api_key}", "Accept": "application/json"},
            timeout=60.0,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: ParserConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "LlamaParseReader":
        settings: LlamaCloudSettings = config.llama_cloud
        return cls(
            api_key=settings.api_key,
            base_url=settings.base_url,
            result_type=config.result_type,
            language=config.language,
            check_interval=config.check_interval,
            max_timeout=config.max_timeout,
            transport=transport,
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            raise ReaderError(
                message=f"LlamaParse API error on {url}: {e.response.status_code} - {e.response.text}",
                reader=self.reader_name,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise ReaderError(
                message=f"Network error calling LlamaParse: {e}",
                reader=self.reader_name,
                original_error=e,
            ) from e

    async def _create_job(self, path: Path) -> str:
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        response = await self._request(
            "POST",
            "/upload",
            files={"file": (path.name, path.read_bytes(), mime_type)},
            data={"language": self.language},
        )
        job_id = response.json().get("id")
        if not job_id:
            raise ReaderError(message=f"Upload of {path} returned no job id", reader=self.reader_name)

        logger.info("parse_job_created", job_id=job_id, file_path=str(path))
        return job_id

    async def _wait_for_job(self, job_id: str) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()

        while True:
            response = await self._request("GET", f"/job/{job_id}")
            status = str(response.json().get("status", "")).upper()

            if status == "SUCCESS":
                logger.info("parse_job_completed", job_id=job_id, seconds=round(loop.time() - started, 2))
                return
            if status in _FAILED_STATUSES:
                raise ReaderError(
                    message=f"Parse job {job_id} finished with status {status}",
                    reader=self.reader_name,
                )
            if loop.time() - started > self.max_timeout:
                raise ReaderError(
                    message=f"Timed out after {self.max_timeout}s waiting for parse job {job_id}",
                    reader=self.reader_name,
                )

            logger.debug("parse_job_pending", job_id=job_id, status=status)
            await asyncio.sleep(self.check_interval)

    async def _parse(self, file_path: str | Path) -> tuple[Path, str]:
        path = self._check_file(file_path)
        job_id = await self._create_job(path)
        await self._wait_for_job(job_id)
        return path, job_id

    async def load_json(self, file_path: str | Path) -> list[ParsedDocument]:
        """Parse a file and return its pages.

        Raises:
            ReaderError: If the file is missing, the job fails or times out
        """
        path, job_id = await self._parse(file_path)
        response = await self._request("GET", f"/job/{job_id}/result/json")
        body = response.json()

        parsed = ParsedDocument(job_id=job_id, file_path=str(path), pages=body.get("pages", []))
        logger.info(
            "parsed_json_loaded",
            job_id=job_id,
            page_count=len(parsed.pages),
            image_count=parsed.image_count,
        )
        return [parsed]

    async def load_data(self, file_path: str | Path) -> list[Document]:
        """Parse a file into a single markdown or text document."""
        path, job_id = await self._parse(file_path)
        result_type = self.result_type.value
        response = await self._request("GET", f"/job/{job_id}/result/{result_type}")
        text = response.json().get(result_type, "")

        return [
            Document(
                text=text,
                doc_type=DocumentType.MARKDOWN if self.result_type == ResultType.MARKDOWN else DocumentType.TEXT,
                source_path=str(path),
                metadata={"file_path": str(path), "job_id": job_id},
            )
        ]

    async def get_images(
        self,
        parsed: list[ParsedDocument],
        download_path: str | Path,
    ) -> list[ExtractedImage]:
        """Download every page image to ``<download_path>/<job_id>-<name>``.

        Raises:
            ReaderError: If an image download fails
        """
        target = Path(download_path)
        target.mkdir(parents=True, exist_ok=True)

        images: list[ExtractedImage] = []
        for result in parsed:
            for page in result.pages:
                for image in page.images:
                    # Server-supplied names must not escape the download directory.
                    file_name = f"{Path(result.job_id).name}-{Path(image.name).name}"
                    image_path = target / file_name
                    response = await self._request("GET", f"/job/{result.job_id}/result/image/{image.name}")
                    image_path.write_bytes(response.content)

                    images.append(
                        ExtractedImage(
                            **image.model_dump(),
                            path=str(image_path),
                            job_id=result.job_id,
                            page_number=page.page,
                            original_file_path=result.file_path,
                        )
                    )
                    logger.debug("image_downloaded", path=str(image_path), page_number=page.page)

        logger.info("images_extracted", count=len(images), download_path=str(target))
        return images

    async def close(self) -> None:
        await self.client.aclose()
