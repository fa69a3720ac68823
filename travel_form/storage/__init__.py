"""Storage backends: the submissions collection and attachment strategies."""

from .blob_storage import BlobStorage, DiskBlobStorage, InlineBlobStorage, StoredBlob, build_blob_storage
from .submission_store import SubmissionStore

__all__ = [
    "BlobStorage",
    "DiskBlobStorage",
    "InlineBlobStorage",
    "StoredBlob",
    "build_blob_storage",
    "SubmissionStore",
]
