"""
Shared pytest fixtures for s3upload tests.
"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

T1 = 1_700_000_000.0


def not_found_error() -> ClientError:
    """ClientError as returned by HeadObject for a missing key."""
    return ClientError(
        {
            "Error": {"Code": "404", "Message": "Not Found"},
            "ResponseMetadata": {"HTTPStatusCode": 404},
        },
        "HeadObject",
    )


def forbidden_error(operation: str = "HeadObject") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": "403", "Message": "Forbidden"},
            "ResponseMetadata": {"HTTPStatusCode": 403},
        },
        operation,
    )


def head_response(mtime: float) -> Dict[str, Any]:
    return {"LastModified": datetime.fromtimestamp(mtime, tz=timezone.utc)}


@pytest.fixture(autouse=True)
def no_global_config() -> Generator[None, None, None]:
    """Keep the developer's global config files out of the tests."""
    with patch("s3upload.config.global_config_locations", return_value=[]):
        yield


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample configuration file contents."""
    return {
        "bucket": "config-bucket",
        "prefix": "static",
        "acl": "public-read",
        "ignore": ["^.", "node_modules"],
        "max_workers": 3,
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a temporary config file."""
    config_path = temp_dir / ".s3upload.json"
    with open(config_path, "w") as f:
        json.dump(sample_config, f)
    return config_path


@pytest.fixture
def sample_file_structure(temp_dir: Path) -> Path:
    """Create a sample file structure for testing."""
    (temp_dir / "dist").mkdir()
    (temp_dir / "dist" / "css").mkdir()
    (temp_dir / "dist" / "js" / "vendor").mkdir(parents=True)

    (temp_dir / "dist" / "app.js").write_text("console.log('app');")
    (temp_dir / "dist" / "index.html").write_text("<html></html>")
    (temp_dir / "dist" / "css" / "site.css").write_text("body {}")
    (temp_dir / "dist" / "js" / "vendor" / "lib.js").write_text("// lib")

    # Files that should be ignored by the default pattern
    (temp_dir / "dist" / ".env").write_text("SECRET=1")
    (temp_dir / "dist" / ".cache").mkdir()
    (temp_dir / "dist" / ".cache" / "data.bin").write_bytes(b"\x00\x01")

    for path in temp_dir.rglob("*"):
        if path.is_file():
            os.utime(path, (T1, T1))

    return temp_dir


@pytest.fixture
def s3_client() -> MagicMock:
    """S3 client mock where every key is missing remotely."""
    client = MagicMock()
    client.head_object.side_effect = not_found_error()
    client.put_object.return_value = {"ETag": '"abc"'}
    return client
