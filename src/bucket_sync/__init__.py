"""bucket-sync - Upload local directories to object store buckets, skipping unchanged files."""

__version__ = "0.1.0"

from bucket_sync.config import AWSConfig, UploaderConfig
from bucket_sync.selector import LocalFile, select_files
from bucket_sync.sync_engine import BucketUploader, UploadReport

__all__ = [
    "AWSConfig",
    "BucketUploader",
    "LocalFile",
    "UploadReport",
    "UploaderConfig",
    "select_files",
    "__version__",
]
