"""
Shared fixtures: a temporary storage root, a local adapter over it, and a
Finder / HTTP client wired to that adapter.
"""
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from finder.config import FinderConfig, Settings
from finder.core.operations import Finder
from finder.main import create_app
from finder.storage.local import LocalStorageAdapter
from finder.storage.registry import AdapterRegistry


@pytest.fixture
def root(tmp_path) -> Path:
    """Storage root inside the pytest temp dir, with room for an 'outside' sibling."""
    storage_root = tmp_path / "root"
    storage_root.mkdir()
    return storage_root.resolve()


@pytest.fixture
def outside(tmp_path) -> Path:
    outside_dir = tmp_path / "outside"
    outside_dir.mkdir()
    (outside_dir / "secret.txt").write_bytes(b"top secret")
    return outside_dir.resolve()


@pytest.fixture
def adapter(root) -> LocalStorageAdapter:
    return LocalStorageAdapter(str(root))


@pytest.fixture
def finder(adapter) -> Finder:
    return Finder(AdapterRegistry([adapter]))


@pytest.fixture
def app(root, finder, tmp_path):
    settings = Settings(STORAGE_PATH=str(root), CONFIG_FILE=str(tmp_path / "missing.json"))
    return create_app(settings=settings, config=FinderConfig(), finder=finder)


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
