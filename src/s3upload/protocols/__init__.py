"""
Protocols subpackage for s3upload.

Re-exports S3 protocol functions.
"""

from s3upload.protocols.s3 import create_client, is_up_to_date, upload_object

__all__ = [
    "create_client",
    "is_up_to_date",
    "upload_object",
]
