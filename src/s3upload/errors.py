"""
Exception types for s3upload.

Every failure that can end a run derives from S3UploadError so the CLI can
report it with a single handler.
"""

from pathlib import Path
from typing import Optional, Union


class S3UploadError(Exception):
    """Base class for errors that abort an upload run."""


class ConfigurationError(S3UploadError):
    """Missing credentials or an unusable configuration file."""


class FilesystemError(S3UploadError):
    """A local stat, list or read operation failed."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class RemoteError(S3UploadError):
    """Base class for failures talking to the bucket."""

    action = "request"

    def __init__(
        self,
        bucket: str,
        key: str,
        reason: str,
        path: Optional[Union[str, Path]] = None,
    ) -> None:
        self.bucket = bucket
        self.key = key
        self.reason = reason
        self.path = str(path) if path is not None else None
        source = f"{self.path} → " if self.path else ""
        super().__init__(
            f"{self.action} failed for {source}s3://{bucket}/{key}: {reason}"
        )


class RemoteMetadataError(RemoteError):
    """HEAD on a key failed for a reason other than the key being absent."""

    action = "Metadata query"


class RemoteUploadError(RemoteError):
    """PUT of a file failed."""

    action = "Upload"


class KeyCollisionError(S3UploadError):
    """Two distinct local files resolved to the same object key."""

    def __init__(self, key: str, first: Path, second: Path) -> None:
        self.key = key
        self.first = first
        self.second = second
        super().__init__(f"Key '{key}' is produced by both '{first}' and '{second}'")


class KeyMappingError(ValueError):
    """A local path could not be mapped to a key (it is outside the working directory)."""
