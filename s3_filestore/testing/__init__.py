"""Test doubles for exercising the file store without a live S3 endpoint."""

from s3_filestore.testing.memory_client import InMemoryS3Client, StoreOp

__all__ = ["InMemoryS3Client", "StoreOp"]
