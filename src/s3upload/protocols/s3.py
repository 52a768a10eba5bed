"""
S3 protocol implementation for s3upload.

Handles client creation, freshness checks (HEAD) and uploads (PUT).
"""

import logging
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from botocore.utils import parse_timestamp

from s3upload.errors import FilesystemError, RemoteMetadataError, RemoteUploadError

# Suppress botocore's verbose error messages
logging.getLogger("botocore").setLevel(logging.CRITICAL)
logging.getLogger("boto3").setLevel(logging.CRITICAL)

NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def create_client(region: Optional[str] = None, endpoint_url: Optional[str] = None):
    """
    Create an S3 client.

    Credentials are read by boto3 from the environment.

    Args:
        region: Optional region name.
        endpoint_url: Optional endpoint for S3-compatible services.

    Returns:
        boto3 S3 client.
    """
    kwargs: Dict[str, Any] = {}
    if region:
        kwargs["region_name"] = region
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return boto3.client("s3", **kwargs)


def is_not_found(error: ClientError) -> bool:
    """Return True if a ClientError means the key does not exist."""
    code = str(error.response.get("Error", {}).get("Code", ""))
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return code in NOT_FOUND_CODES or status == 404


def head_object_safe(client, bucket: str, key: str) -> Optional[Dict[str, Any]]:
    """
    HEAD a key, returning None when it does not exist.

    Raises:
        RemoteMetadataError: For any failure other than "not found".
    """
    try:
        return client.head_object(Bucket=bucket, Key=key)
    except ClientError as e:
        if is_not_found(e):
            return None
        raise RemoteMetadataError(bucket, key, str(e)) from e
    except BotoCoreError as e:
        raise RemoteMetadataError(bucket, key, str(e)) from e


def remote_mtime(head: Optional[Dict[str, Any]]) -> float:
    """
    Return the remote last-modified time as a POSIX timestamp.

    A missing object counts as infinitely old.
    """
    if head is None:
        return float("-inf")
    last_modified: Union[datetime, str, None] = head.get("LastModified")
    if last_modified is None:
        return float("-inf")
    if not isinstance(last_modified, datetime):
        last_modified = parse_timestamp(last_modified)
    return last_modified.timestamp()


def is_up_to_date(client, bucket: str, key: str, local_mtime: float) -> bool:
    """
    Check whether the remote copy of key is at least as new as the local file.

    Args:
        client: S3 client.
        bucket: Bucket name.
        key: Object key.
        local_mtime: Local modification time (POSIX timestamp).

    Returns:
        True if local_mtime <= remote last-modified, False otherwise
        (including when the key does not exist).

    Raises:
        RemoteMetadataError: If the HEAD request fails for another reason.
    """
    head = head_object_safe(client, bucket, key)
    try:
        return local_mtime <= remote_mtime(head)
    except (ValueError, TypeError) as e:
        raise RemoteMetadataError(
            bucket, key, f"unreadable LastModified: {e}"
        ) from e


def guess_content_type(file_path: Union[str, Path]) -> str:
    ctype, _ = mimetypes.guess_type(str(file_path))
    return ctype or DEFAULT_CONTENT_TYPE


def upload_object(
    client,
    bucket: str,
    key: str,
    local_path: Union[str, Path],
    size: int,
    acl: str,
) -> None:
    """
    Stream a local file to bucket/key.

    Args:
        client: S3 client.
        bucket: Bucket name.
        key: Destination key.
        local_path: Local file to read.
        size: File size from the stat snapshot.
        acl: Canned ACL applied to the object.

    Raises:
        FilesystemError: If the local file cannot be opened.
        RemoteUploadError: If the PUT request fails.
    """
    try:
        f = open(local_path, "rb")
    except OSError as e:
        raise FilesystemError(local_path, f"cannot read: {e.strerror or e}") from e

    with f:
        try:
            client.put_object(
                Bucket=bucket,
                Key=key,
                Body=f,
                ACL=acl,
                ContentType=guess_content_type(local_path),
                ContentLength=size,
            )
        except (ClientError, BotoCoreError) as e:
            raise RemoteUploadError(bucket, key, str(e), path=local_path) from e
