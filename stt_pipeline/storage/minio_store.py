"""MinIO implementation of the ObjectStore interface."""

from __future__ import annotations

import io
import logging
from typing import Iterator

from minio import Minio
from minio.error import S3Error

from stt_pipeline.exceptions import ObjectNotFoundError, StorageError
from stt_pipeline.storage.base import ObjectStore

logger = logging.getLogger(__name__)

_MISSING_CODES = ("NoSuchKey", "NoSuchObject", "NoSuchBucket")


def get_minio_client(endpoint: str, access_key: str, secret_key: str, secure: bool = False) -> Minio:
    """Initialize and return a MinIO client."""
    try:
        return Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
        )
    except Exception:
        logger.exception("MinIO client initialization failed for %s", endpoint)
        raise


class MinioObjectStore(ObjectStore):
    """Handles object storage operations using MinIO (or any S3 endpoint)."""

    def __init__(self, client: Minio):
        self._client = client

    def get(self, bucket: str, name: str) -> bytes:
        try:
            response = self._client.get_object(bucket, name)
        except S3Error as e:
            if e.code in _MISSING_CODES:
                raise ObjectNotFoundError(bucket, name)
            raise StorageError(bucket, name, e) from e
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    def put(self, bucket: str, name: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        try:
            self._client.put_object(
                bucket_name=bucket,
                object_name=name,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
        except S3Error as e:
            raise StorageError(bucket, name, e) from e

    def exists(self, bucket: str, name: str) -> bool:
        try:
            self._client.stat_object(bucket, name)
        except S3Error as e:
            if e.code in _MISSING_CODES:
                return False
            raise StorageError(bucket, name, e) from e
        return True

    def delete(self, bucket: str, name: str) -> None:
        try:
            self._client.remove_object(bucket, name)
        except S3Error as e:
            if e.code in _MISSING_CODES:
                return
            raise StorageError(bucket, name, e) from e

    def list(self, bucket: str, prefix: str = "") -> Iterator[str]:
        try:
            for obj in self._client.list_objects(bucket, prefix=prefix, recursive=True):
                yield obj.object_name
        except S3Error as e:
            raise StorageError(bucket, prefix, e) from e

    def ensure_bucket_exists(self, bucket: str) -> None:
        if not self._client.bucket_exists(bucket):
            self._client.make_bucket(bucket)
            logger.info("Bucket created: %s", bucket)
