"""
HTTP tests for the file-manager endpoint and the health endpoints.
"""
import io
import zipfile

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from finder import __version__
from finder.config import FinderConfig, Settings
from finder.main import create_app


class TestReadCommands:

    @pytest.mark.asyncio
    async def test_index(self, client, root):
        (root / "a.txt").write_bytes(b"hello")

        response = await client.get("/api", params={"q": "index"})

        assert response.status_code == 200
        body = response.json()
        assert body["adapter"] == "local"
        assert body["storages"] == ["local"]
        assert body["dirname"] == "local://"
        assert body["files"] == [{
            "type": "file",
            "path": "local://a.txt",
            "basename": "a.txt",
            "extension": "txt",
            "mime_type": "text/plain",
            "last_modified": body["files"][0]["last_modified"],
            "file_size": 5,
            "storage": "local",
            "url": None,
        }]

    @pytest.mark.asyncio
    async def test_subfolders(self, client, root):
        (root / "docs").mkdir()
        (root / "a.txt").write_bytes(b"a")

        response = await client.get("/api", params={"q": "subfolders"})

        assert response.status_code == 200
        assert response.json() == {
            "folders": [{"adapter": "local", "path": "local://docs", "basename": "docs"}]
        }

    @pytest.mark.asyncio
    async def test_search(self, client, root):
        (root / "Invoice-2024.pdf").write_bytes(b"%PDF")
        (root / "notes.txt").write_bytes(b"n")

        response = await client.get("/api", params={"q": "search", "filter": "invoice"})

        assert response.status_code == 200
        assert [f["basename"] for f in response.json()["files"]] == ["Invoice-2024.pdf"]

    @pytest.mark.asyncio
    async def test_download(self, client, root):
        (root / "a.txt").write_bytes(b"hello")

        response = await client.get("/api", params={"q": "download", "path": "local://a.txt"})

        assert response.status_code == 200
        assert response.content == b"hello"
        assert response.headers["content-disposition"] == 'attachment; filename="a.txt"'

    @pytest.mark.asyncio
    async def test_preview(self, client, root):
        (root / "a.txt").write_bytes(b"hello")

        response = await client.get("/api", params={"q": "preview", "path": "local://a.txt"})

        assert response.status_code == 200
        assert response.content == b"hello"
        assert response.headers["content-type"].startswith("text/plain")
        assert "content-disposition" not in response.headers

    @pytest.mark.asyncio
    async def test_download_missing_is_404(self, client):
        response = await client.get("/api", params={"q": "download", "path": "local://nope.txt"})

        assert response.status_code == 404
        assert response.json()["status"] is False
        assert "nope.txt" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_traversal_is_400(self, client):
        response = await client.get("/api", params={"q": "index", "path": "local://../outside"})

        assert response.status_code == 400
        assert response.json()["status"] is False

    @pytest.mark.asyncio
    async def test_unknown_command(self, client):
        response = await client.get("/api", params={"q": "explode"})

        assert response.status_code == 400
        assert response.json() == {"status": False, "message": "Unknown command: explode"}

    @pytest.mark.asyncio
    async def test_request_id_header(self, client):
        response = await client.get("/api", params={"q": "index"})
        assert response.headers.get("x-request-id")


class TestWriteCommands:

    @pytest.mark.asyncio
    async def test_newfolder(self, client, root):
        response = await client.post("/api", params={"q": "newfolder"}, json={"name": "docs"})

        assert response.status_code == 200
        assert [f["basename"] for f in response.json()["files"]] == ["docs"]
        assert (root / "docs").is_dir()

    @pytest.mark.asyncio
    async def test_newfile_in_subdirectory(self, client, root):
        (root / "docs").mkdir()

        response = await client.post(
            "/api", params={"q": "newfile", "path": "local://docs"}, json={"name": "a.md"}
        )

        assert response.status_code == 200
        assert response.json()["dirname"] == "local://docs"
        assert (root / "docs" / "a.md").exists()

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        response = await client.post(
            "/api",
            params={"q": "newfolder"},
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"status": False, "message": "Expected JSON payload"}

    @pytest.mark.asyncio
    async def test_missing_field(self, client):
        response = await client.post("/api", params={"q": "rename"}, json={"item": "local://a.txt"})

        assert response.status_code == 400
        assert response.json()["status"] is False

    @pytest.mark.asyncio
    async def test_unknown_post_command(self, client):
        response = await client.post("/api", params={"q": "chmod"}, json={})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_rename(self, client, root):
        (root / "a.txt").write_bytes(b"a")

        response = await client.post(
            "/api", params={"q": "rename"}, json={"item": "local://a.txt", "name": "b.txt"}
        )

        assert response.status_code == 200
        assert [f["basename"] for f in response.json()["files"]] == ["b.txt"]

    @pytest.mark.asyncio
    async def test_move_conflict(self, client, root):
        (root / "a.txt").write_bytes(b"a")
        (root / "dest").mkdir()
        (root / "dest" / "a.txt").write_bytes(b"existing")

        response = await client.post("/api", params={"q": "move"}, json={
            "item": "local://dest",
            "items": [{"path": "local://a.txt", "type": "file"}],
        })

        assert response.status_code == 400
        assert response.json() == {"status": False, "message": "One of the files already exists."}
        assert (root / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_delete(self, client, root):
        (root / "a.txt").write_bytes(b"a")

        response = await client.post(
            "/api", params={"q": "delete"}, json={"items": [{"path": "local://a.txt"}]}
        )

        assert response.status_code == 200
        assert response.json()["files"] == []

    @pytest.mark.asyncio
    async def test_upload(self, client, root):
        response = await client.post(
            "/api",
            params={"q": "upload", "path": "local://"},
            data={"name": "up.txt"},
            files={"file": ("ignored.txt", b"uploaded", "text/plain")},
        )

        assert response.status_code == 200
        assert (root / "up.txt").read_bytes() == b"uploaded"

    @pytest.mark.asyncio
    async def test_upload_requires_multipart(self, client):
        response = await client.post("/api", params={"q": "upload"}, json={"name": "x"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_save(self, client, root):
        (root / "a.txt").write_bytes(b"old")

        response = await client.post(
            "/api", params={"q": "save", "path": "local://a.txt"}, json={"content": "new"}
        )

        assert response.status_code == 200
        assert response.content == b"new"
        assert (root / "a.txt").read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_archive_and_unarchive(self, client, root):
        (root / "a.txt").write_bytes(b"alpha")

        response = await client.post("/api", params={"q": "archive"}, json={
            "name": "bundle",
            "items": [{"path": "local://a.txt", "type": "file"}],
        })
        assert response.status_code == 200
        with zipfile.ZipFile(io.BytesIO((root / "bundle.zip").read_bytes())) as zf:
            assert zf.read("a.txt") == b"alpha"

        response = await client.post(
            "/api", params={"q": "unarchive"}, json={"item": "local://bundle.zip"}
        )
        assert response.status_code == 200
        assert (root / "bundle" / "a.txt").read_bytes() == b"alpha"

    @pytest.mark.asyncio
    async def test_archive_name_taken(self, client, root):
        (root / "a.txt").write_bytes(b"alpha")
        (root / "bundle.zip").write_bytes(b"zip")

        response = await client.post("/api", params={"q": "archive"}, json={
            "name": "bundle",
            "items": [{"path": "local://a.txt"}],
        })

        assert response.status_code == 400
        assert "already exists" in response.json()["message"]


class TestRequestLimits:
    """Bodies over MAX_JSON_SIZE / MAX_UPLOAD_SIZE are refused with 413."""

    @pytest_asyncio.fixture
    async def small_client(self, root, finder, tmp_path):
        settings = Settings(
            STORAGE_PATH=str(root),
            CONFIG_FILE=str(tmp_path / "missing.json"),
            MAX_JSON_SIZE=128,
            MAX_UPLOAD_SIZE=1024,
        )
        app = create_app(settings=settings, config=FinderConfig(), finder=finder)
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac

    @pytest.mark.asyncio
    async def test_json_under_limit(self, small_client, root):
        response = await small_client.post("/api", params={"q": "newfolder"}, json={"name": "docs"})

        assert response.status_code == 200
        assert (root / "docs").is_dir()

    @pytest.mark.asyncio
    async def test_json_over_limit(self, small_client, root):
        (root / "a.txt").write_bytes(b"old")

        response = await small_client.post(
            "/api", params={"q": "save", "path": "local://a.txt"}, json={"content": "x" * 500}
        )

        assert response.status_code == 413
        assert response.json()["status"] is False
        assert (root / "a.txt").read_bytes() == b"old"

    @pytest.mark.asyncio
    async def test_upload_over_limit(self, small_client, root):
        response = await small_client.post(
            "/api",
            params={"q": "upload"},
            data={"name": "big.bin"},
            files={"file": ("big.bin", b"\x00" * 4096, "application/octet-stream")},
        )

        assert response.status_code == 413
        assert response.json()["status"] is False
        assert not (root / "big.bin").exists()

    @pytest.mark.asyncio
    async def test_upload_under_limit(self, small_client, root):
        response = await small_client.post(
            "/api",
            params={"q": "upload"},
            data={"name": "small.bin"},
            files={"file": ("small.bin", b"\x01" * 100, "application/octet-stream")},
        )

        assert response.status_code == 200
        assert (root / "small.bin").read_bytes() == b"\x01" * 100


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}

    @pytest.mark.asyncio
    async def test_adapters_health(self, client):
        response = await client.get("/health/adapters")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["adapters"]["total"] == 1
        assert body["adapters"]["healthy"] == 1
        assert "warnings" not in body


@pytest.mark.asyncio
async def test_unhandled_error_is_500(app, finder, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(finder, "index", boom)

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        response = await ac.get("/api", params={"q": "index"})

    assert response.status_code == 500
    body = response.json()
    assert body["status"] is False
    assert body["message"] == "An unexpected error occurred."
