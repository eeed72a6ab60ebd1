"""Tests for the conversion API endpoints."""

import asyncio
import sys

import pytest
import pytest_asyncio
from aiohttp import FormData, MultipartWriter

from fcs.jobs.services.conversion import ACCEPTED_MESSAGE, ConversionService
from fcs.server.app import create_app
from fcs.server.lifecycle import ServerLifecycle

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="fake transcoder is a POSIX shell script"
)

UNKNOWN_JOB_ID = "6f1c2d3e-4b5a-4c7d-8e9f-0a1b2c3d4e5f"


@pytest.fixture
def service(make_config, fake_ffmpeg):
    service = ConversionService.from_config(
        make_config(fake_ffmpeg, max_file_size="1KB")
    )
    yield service
    service.shutdown(wait=True)


@pytest_asyncio.fixture
async def client(aiohttp_client, service):
    app = create_app(service, lifecycle=ServerLifecycle(shutdown_timeout=5.0))
    return await aiohttp_client(app)


def _form(content=b"fake-video-bytes", filename="clip.mov", **fields):
    form = FormData()
    form.add_field(
        "file",
        content,
        filename=filename,
        content_type="application/octet-stream",
    )
    for name, value in fields.items():
        form.add_field(name, str(value))
    return form


async def _wait_for_terminal(client, job_id, timeout=10.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        resp = await client.get(f"/api/status/{job_id}")
        body = await resp.json()
        if body["status"] in ("COMPLETED", "FAILED"):
            return body
        assert loop.time() < deadline, f"job {job_id} stuck in {body['status']}"
        await asyncio.sleep(0.05)


class TestConvertEndpoint:
    """Tests for POST /api/convert."""

    @pytest.mark.asyncio
    async def test_accepts_upload(self, client, service):
        """A valid upload creates a job and stores the file."""
        resp = await client.post(
            "/api/convert", data=_form(targetFormat="mp4", quality="high")
        )

        assert resp.status == 200
        body = await resp.json()
        assert body["message"] == ACCEPTED_MESSAGE
        assert body["status"] == "PENDING"
        assert body["originalFileName"] == "clip.mov"
        assert body["originalFormat"] == "mov"
        assert body["targetFormat"] == "mp4"
        assert body["quality"] == "high"
        assert body["originalFileSize"] == len(b"fake-video-bytes")
        assert body["convertedFileName"] == "clip_converted.mp4"
        assert body["downloadUrl"] is None
        assert body["completedAt"] is None

        job = service.get_job(body["jobId"])
        assert job is not None
        assert job.original_file_name == "clip.mov"
        assert job.quality == "high"
        assert job.original_file_size == len(b"fake-video-bytes")

    @pytest.mark.asyncio
    async def test_job_completes_and_downloads(self, client):
        """The accepted job completes and its output can be downloaded."""
        resp = await client.post(
            "/api/convert", data=_form(targetFormat="mp4", width=640, height=480)
        )
        job_id = (await resp.json())["jobId"]

        status = await _wait_for_terminal(client, job_id)

        assert status["status"] == "COMPLETED"
        assert status["convertedFileName"] == "clip_converted.mp4"
        assert status["convertedFileSize"] == len(b"converted-data")
        assert status["downloadUrl"] == f"/api/files/download/{job_id}"
        assert status["width"] == 640

        download = await client.get(status["downloadUrl"])
        assert download.status == 200
        assert await download.read() == b"converted-data"
        assert (
            download.headers["Content-Disposition"]
            == 'attachment; filename="clip_converted.mp4"'
        )

    @pytest.mark.asyncio
    async def test_requires_multipart(self, client):
        """Non-multipart bodies are rejected."""
        resp = await client.post("/api/convert", json={"targetFormat": "mp4"})

        assert resp.status == 400
        assert (await resp.json())["code"] == "INVALID_REQUEST"

    @pytest.mark.asyncio
    async def test_unsupported_format(self, client):
        """Unknown target formats are rejected before anything is stored."""
        resp = await client.post("/api/convert", data=_form(targetFormat="xyz"))

        assert resp.status == 400
        body = await resp.json()
        assert body["code"] == "UNSUPPORTED_FORMAT"
        assert "xyz" in body["error"]

    @pytest.mark.asyncio
    async def test_missing_target_format(self, client):
        """targetFormat is required."""
        resp = await client.post("/api/convert", data=_form())

        assert resp.status == 400
        body = await resp.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"][0]["field"] == "targetFormat"

    @pytest.mark.asyncio
    async def test_invalid_quality(self, client):
        """Quality must be one of the known tiers."""
        resp = await client.post(
            "/api/convert", data=_form(targetFormat="mp4", quality="ultra")
        )

        assert resp.status == 400
        assert (await resp.json())["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_empty_file(self, client):
        """Empty uploads are rejected."""
        resp = await client.post(
            "/api/convert", data=_form(content=b"", targetFormat="mp4")
        )

        assert resp.status == 400
        body = await resp.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["error"] == "File is empty"

    @pytest.mark.asyncio
    async def test_missing_file(self, client):
        """A request without a file part is an empty upload."""
        with MultipartWriter("form-data") as writer:
            part = writer.append("mp4")
            part.set_content_disposition("form-data", name="targetFormat")

        resp = await client.post("/api/convert", data=writer)

        assert resp.status == 400
        assert (await resp.json())["error"] == "File is empty"

    @pytest.mark.asyncio
    async def test_file_too_large(self, client, tmp_path):
        """Uploads over the size limit get 413 and leave nothing behind."""
        resp = await client.post(
            "/api/convert", data=_form(content=b"x" * 2048, targetFormat="mp4")
        )

        assert resp.status == 413
        assert (await resp.json())["code"] == "FILE_TOO_LARGE"
        uploads = tmp_path / "uploads"
        assert not uploads.exists() or not any(uploads.iterdir())

    @pytest.mark.asyncio
    async def test_rejected_while_shutting_down(self, client):
        """New conversions are refused during shutdown."""
        client.app["lifecycle"].initiate_shutdown()

        resp = await client.post("/api/convert", data=_form(targetFormat="mp4"))

        assert resp.status == 503
        assert (await resp.json())["code"] == "SHUTTING_DOWN"


class TestStatusEndpoint:
    """Tests for GET /api/status/{job_id}."""

    @pytest.mark.asyncio
    async def test_invalid_id(self, client):
        """Malformed ids are rejected."""
        resp = await client.get("/api/status/not-a-uuid")

        assert resp.status == 400
        assert (await resp.json())["code"] == "INVALID_ID_FORMAT"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "job_id",
        [
            "6f1c2d3e4b5a4c7d8e9f0a1b2c3d4e5f",
            "6f1c2d3e-4b5a-4c7d-8e9f-0a1b2c3d4e5",
            "zzzzzzzz-zzzz-zzzz-zzzz-zzzzzzzzzzzz",
        ],
    )
    async def test_rejects_non_uuid_shapes(self, client, job_id):
        """Ids that are not hyphenated hex UUIDs are rejected."""
        resp = await client.get(f"/api/status/{job_id}")

        assert resp.status == 400
        assert (await resp.json())["code"] == "INVALID_ID_FORMAT"

    @pytest.mark.asyncio
    async def test_uppercase_id_is_well_formed(self, client):
        """Uppercase UUIDs pass the format check and are simply unknown."""
        resp = await client.get(f"/api/status/{UNKNOWN_JOB_ID.upper()}")

        assert resp.status == 404

    @pytest.mark.asyncio
    async def test_unknown_job(self, client):
        """Unknown ids are 404."""
        resp = await client.get(f"/api/status/{UNKNOWN_JOB_ID}")

        assert resp.status == 404
        body = await resp.json()
        assert body == {"error": "Job not found", "code": "NOT_FOUND"}

    @pytest.mark.asyncio
    async def test_pending_job_has_no_download_url(self, client, service, make_job):
        """Only completed jobs carry a download URL."""
        job = make_job(job_id=UNKNOWN_JOB_ID)
        service.store.put(job)

        resp = await client.get(f"/api/status/{UNKNOWN_JOB_ID}")

        body = await resp.json()
        assert body["status"] == "PENDING"
        assert body["downloadUrl"] is None


class TestDownloadEndpoint:
    """Tests for GET /api/files/download/{job_id}."""

    @pytest.mark.asyncio
    async def test_unknown_job(self, client):
        """Unknown ids are 404."""
        resp = await client.get(f"/api/files/download/{UNKNOWN_JOB_ID}")

        assert resp.status == 404
        assert (await resp.json())["error"] == "Job not found"

    @pytest.mark.asyncio
    async def test_job_not_completed(self, client, service, make_job):
        """Files of unfinished jobs are not available."""
        service.store.put(make_job(job_id=UNKNOWN_JOB_ID))

        resp = await client.get(f"/api/files/download/{UNKNOWN_JOB_ID}")

        assert resp.status == 404
        body = await resp.json()
        assert body["error"] == "Converted file not available"
        assert "PENDING" in body["details"]

    @pytest.mark.asyncio
    async def test_invalid_id(self, client):
        """Malformed ids are rejected."""
        resp = await client.get("/api/files/download/not-a-uuid")

        assert resp.status == 400
        assert (await resp.json())["code"] == "INVALID_ID_FORMAT"


class TestFormatsEndpoint:
    """Tests for GET /api/formats."""

    @pytest.mark.asyncio
    async def test_lists_formats(self, client):
        """Formats are grouped by category."""
        resp = await client.get("/api/formats")

        assert resp.status == 200
        body = await resp.json()
        assert "mp4" in body["video"]
        assert "mp3" in body["audio"]
        assert "png" in body["image"]
