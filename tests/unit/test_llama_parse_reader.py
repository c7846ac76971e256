"""Unit tests for the LlamaParse reader, against a mocked HTTP service."""

import httpx
import pytest

from docindex.config.schema import ResultType
from docindex.entities import PageImage, ParsedDocument, ParsedPage
from docindex.readers.base import ReaderError
from docindex.readers.llama_parse import LlamaParseReader

JOB_ID = "job-123"

PAGES = [
    {
        "page": 1,
        "text": "Quarterly revenue grew.",
        "md": "# Quarterly revenue grew.",
        "images": [{"name": "img_p0_1.png", "height": 100, "width": 200, "x": 10, "y": 20, "type": None}],
        "items": [],
    },
    {"page": 2, "text": "Headcount stayed flat.", "md": "Headcount stayed flat.", "images": []},
]


class FakeLlamaCloud:
    """Minimal stand-in for the parsing endpoints."""

    def __init__(self, statuses: list[str] | None = None):
        self.statuses = list(statuses or ["PENDING", "SUCCESS"])
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/v1/parsing/upload":
            return httpx.Response(200, json={"id": JOB_ID, "status": "PENDING"})
        if path == f"/api/v1/parsing/job/{JOB_ID}":
            status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            return httpx.Response(200, json={"id": JOB_ID, "status": status})
        if path == f"/api/v1/parsing/job/{JOB_ID}/result/json":
            return httpx.Response(200, json={"pages": PAGES, "job_metadata": {}})
        if path == f"/api/v1/parsing/job/{JOB_ID}/result/markdown":
            return httpx.Response(200, json={"markdown": "# Quarterly revenue grew.\n\nHeadcount stayed flat."})
        if path == f"/api/v1/parsing/job/{JOB_ID}/result/image/img_p0_1.png":
            return httpx.Response(200, content=b"\x89PNG-bytes")
        return httpx.Response(404, json={"detail": "not found"})


def make_reader(service: FakeLlamaCloud, **kwargs) -> LlamaParseReader:
    kwargs.setdefault("check_interval", 0)
    return LlamaParseReader(api_key="llx-test", transport=httpx.MockTransport(service), **kwargs)


@pytest.mark.asyncio
class TestLlamaParseReader:
    """Test LlamaParseReader functionality."""

    async def test_missing_api_key(self):
        with pytest.raises(ReaderError, match="LLAMA_CLOUD_API_KEY"):
            LlamaParseReader(api_key=None)

    async def test_missing_file(self, tmp_path):
        reader = make_reader(FakeLlamaCloud())

        with pytest.raises(ReaderError, match="File not found"):
            await reader.load_json(tmp_path / "missing.pdf")

    async def test_load_json(self, sample_pdf):
        """Test upload, polling until SUCCESS and page retrieval."""
        service = FakeLlamaCloud(["PENDING", "PENDING", "SUCCESS"])
        reader = make_reader(service)

        parsed = await reader.load_json(sample_pdf)
        await reader.close()

        assert len(parsed) == 1
        assert parsed[0].job_id == JOB_ID
        assert parsed[0].file_path == str(sample_pdf)
        assert [page.page for page in parsed[0].pages] == [1, 2]
        assert parsed[0].pages[0].images[0].name == "img_p0_1.png"

        upload = service.requests[0]
        assert upload.method == "POST"
        assert upload.headers["Authorization"] == "Bearer llx-test"
        status_polls = [r for r in service.requests if r.url.path == f"/api/v1/parsing/job/{JOB_ID}"]
        assert len(status_polls) == 3

    async def test_load_data_markdown(self, sample_pdf):
        reader = make_reader(FakeLlamaCloud(), result_type=ResultType.MARKDOWN)

        documents = await reader.load_data(sample_pdf)

        assert len(documents) == 1
        assert documents[0].text.startswith("# Quarterly revenue grew.")
        assert documents[0].metadata["job_id"] == JOB_ID

    async def test_get_images(self, sample_pdf, tmp_path):
        """Test that images land at <dir>/<job_id>-<name> with their page number."""
        reader = make_reader(FakeLlamaCloud())
        parsed = await reader.load_json(sample_pdf)

        images = await reader.get_images(parsed, tmp_path / "images")

        assert len(images) == 1
        image = images[0]
        assert image.path == str(tmp_path / "images" / f"{JOB_ID}-img_p0_1.png")
        assert image.page_number == 1
        assert image.job_id == JOB_ID
        assert image.original_file_path == str(sample_pdf)
        assert image.width == 200
        assert (tmp_path / "images" / f"{JOB_ID}-img_p0_1.png").read_bytes() == b"\x89PNG-bytes"

    async def test_get_images_keeps_server_names_inside_download_path(self, tmp_path):
        """Test that directory parts of a returned image name are dropped."""

        def image_service(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"png")

        reader = LlamaParseReader(api_key="llx-test", transport=httpx.MockTransport(image_service))
        parsed = [
            ParsedDocument(
                job_id=JOB_ID,
                file_path="report.pdf",
                pages=[ParsedPage(page=1, images=[PageImage(name="../../escaped.png")])],
            )
        ]
        download_path = tmp_path / "nested" / "images"

        images = await reader.get_images(parsed, download_path)
        await reader.close()

        assert images[0].path == str(download_path / f"{JOB_ID}-escaped.png")
        assert (download_path / f"{JOB_ID}-escaped.png").read_bytes() == b"png"
        assert not (tmp_path / "escaped.png").exists()
        assert [p.name for p in download_path.iterdir()] == [f"{JOB_ID}-escaped.png"]

    async def test_job_error_status(self, sample_pdf):
        reader = make_reader(FakeLlamaCloud(["ERROR"]))

        with pytest.raises(ReaderError, match="finished with status ERROR"):
            await reader.load_json(sample_pdf)

    async def test_job_timeout(self, sample_pdf):
        reader = make_reader(FakeLlamaCloud(["PENDING"]), check_interval=0.02, max_timeout=0.01)

        with pytest.raises(ReaderError, match="Timed out"):
            await reader.load_json(sample_pdf)

    async def test_http_error(self, sample_pdf):
        def unauthorized(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"detail": "Invalid API key"})

        reader = LlamaParseReader(api_key="llx-bad", transport=httpx.MockTransport(unauthorized))

        with pytest.raises(ReaderError, match="401") as exc_info:
            await reader.load_json(sample_pdf)
        assert exc_info.value.reader == "llama_parse"
