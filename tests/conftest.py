"""
pytest configuration and fixtures.
"""

import io
import json
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpmodel import MessageConfig, get_config, set_config
from httpmodel.http import Request, ServerRequest, UploadedFile


@pytest.fixture
def sample_request() -> Request:
    """Sample GET request with a path and query string."""
    return Request("GET", "http://example.com/test/23?test=123")


@pytest.fixture
def sample_server_request() -> ServerRequest:
    """Sample server request built from the same URI."""
    return ServerRequest("GET", "http://example.com/test/23?test=123")


@pytest.fixture
def json_server_request() -> ServerRequest:
    """Sample POST server request with a JSON body."""
    body = json.dumps({"title": "value", "array": [1, 2]})
    return ServerRequest(
        "POST",
        "http://example.com/test",
        {"Content-Type": "application/json"},
        body,
    )


@pytest.fixture
def memory_resource() -> io.BytesIO:
    """In-memory binary resource holding b"test"."""
    return io.BytesIO(b"test")


@pytest.fixture
def upload_path(tmp_path: Path) -> Path:
    """Temporary uploaded file holding "Test Content"."""
    path = tmp_path / "upload-tmp"
    path.write_bytes(b"Test Content")
    return path


@pytest.fixture
def uploaded_file(upload_path: Path) -> UploadedFile:
    """Path-backed upload without error."""
    return UploadedFile(str(upload_path), 12, 0, "uploaded.txt", "text/plain")


@pytest.fixture
def restore_config() -> Generator[MessageConfig, None, None]:
    """Restore the process-wide configuration after the test."""
    previous = get_config()
    yield previous
    set_config(previous)
