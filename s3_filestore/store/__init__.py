"""Object store client abstraction and implementations."""

from s3_filestore.store.object_store import (
    BucketInfo,
    ObjectListing,
    ObjectMetadata,
    ObjectStoreClient,
)
from s3_filestore.store.stores import Boto3S3Client, classify_error
from s3_filestore.store.streams import ObjectWriteStream

__all__ = [
    "Boto3S3Client",
    "BucketInfo",
    "ObjectListing",
    "ObjectMetadata",
    "ObjectStoreClient",
    "ObjectWriteStream",
    "classify_error",
]
