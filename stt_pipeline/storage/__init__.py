"""Object storage backends for job records, source audio, and artifacts.

WHY: The record store, the harvester, and ingest all read and write named
objects in buckets. The backend is chosen per deployment: the local
filesystem for single-host setups and tests, MinIO/S3 otherwise.

RULES:
- All storage access goes through an ObjectStore instance
- create_object_store() is the only place that reads backend settings
"""

from __future__ import annotations

from stt_pipeline.config import Settings
from stt_pipeline.storage.base import ObjectStore
from stt_pipeline.storage.local import LocalObjectStore


def create_object_store(settings: Settings) -> ObjectStore:
    """Build the ObjectStore selected by settings.storage_backend."""
    if settings.storage_backend == "minio":
        from stt_pipeline.storage.minio_store import MinioObjectStore, get_minio_client

        client = get_minio_client(
            settings.minio_endpoint,
            settings.minio_access_key,
            settings.minio_secret_key,
            secure=settings.minio_secure,
        )
        store = MinioObjectStore(client)
        for bucket in (settings.ingest_bucket, settings.result_bucket):
            store.ensure_bucket_exists(bucket)
        return store
    return LocalObjectStore(settings.storage_root)


__all__ = ["ObjectStore", "LocalObjectStore", "create_object_store"]
