"""
s3upload - Recursively upload files and folders to an S3 bucket

Uploads only files whose remote copy is older than the local one and skips
paths matching ignore patterns.

License: MIT License
"""

__version__ = "1.0.0"

DEFAULT_ACL = "private"
CANNED_ACLS = (
    "private",
    "public-read",
    "public-read-write",
    "authenticated-read",
    "bucket-owner-read",
    "bucket-owner-full-control",
)
DEFAULT_IGNORE = "^."
DEFAULT_MAX_WORKERS = 5
CREDENTIAL_ENV_VARS = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")

# Public API exports
from s3upload.config import RunConfig, check_credentials, load_config
from s3upload.errors import (
    ConfigurationError,
    FilesystemError,
    KeyCollisionError,
    KeyMappingError,
    RemoteMetadataError,
    RemoteUploadError,
    S3UploadError,
)
from s3upload.excludes import IgnoreRules, PathKind, classify_path
from s3upload.protocols.s3 import create_client, is_up_to_date, upload_object
from s3upload.sync import SyncEngine, SyncResult, UploadTask
from s3upload.utils import calculate_key

__all__ = [
    "__version__",
    "DEFAULT_ACL",
    "CANNED_ACLS",
    "DEFAULT_IGNORE",
    "DEFAULT_MAX_WORKERS",
    "CREDENTIAL_ENV_VARS",
    "RunConfig",
    "check_credentials",
    "load_config",
    "ConfigurationError",
    "FilesystemError",
    "KeyCollisionError",
    "KeyMappingError",
    "RemoteMetadataError",
    "RemoteUploadError",
    "S3UploadError",
    "IgnoreRules",
    "PathKind",
    "classify_path",
    "create_client",
    "is_up_to_date",
    "upload_object",
    "SyncEngine",
    "SyncResult",
    "UploadTask",
    "calculate_key",
]
