"""Shared fixtures for storage backend integration tests.

These fixtures provide:
- Unique test prefixes for isolation
- Backend instances rooted in a temporary directory
- A helper that places files directly in the backing store
"""

import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio


@pytest.fixture
def test_prefix() -> str:
    """Generate a unique prefix for test isolation."""
    return f"test-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def test_binary() -> bytes:
    """Sample binary data, shaped like a small font file."""
    return b"wOF2" + bytes(range(256)) + b"glyph data"


@pytest.fixture
def storage_root(tmp_path):
    """Directory backing the filesystem backend."""
    return tmp_path / "storage"


@pytest_asyncio.fixture
async def filesystem_backend(storage_root) -> AsyncGenerator:
    """Create a FilesystemBackend for testing."""
    from draftsync.platform.storage import FilesystemBackend

    backend = FilesystemBackend(base_path=storage_root)
    yield backend
    # Cleanup is automatic since we use tmp_path


@pytest.fixture
def filesystem_store(storage_root):
    """Write and inspect files behind the filesystem backend."""

    class _Store:
        def put(self, path: str, content: bytes = b"x") -> None:
            target = storage_root / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)

        def has(self, path: str) -> bool:
            return (storage_root / path).exists()

    return _Store()
