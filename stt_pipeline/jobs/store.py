"""Durable job record store on top of an ObjectStore.

WHY: Job state has to survive process restarts and be visible to whichever
process runs the next harvest pass. One JSON object per source file in the
ingest bucket gives exactly that, and its mere existence is what makes a
second submission of the same file a conflict.

HOW: JobRecordStore derives a key from the source URI, serializes records
fully to bytes before handing them to ObjectStore.put() (which publishes
them atomically), and lists keys lazily under the status prefix.

RULES:
- key_for("gs://bucket/dir/a.wav") == "status/bucket/dir/a.wav.json"
- read() raises RecordNotFoundError or MalformedRecordError; other storage
  failures propagate as StorageError
- write() never exposes a partially serialized record
- delete() is best-effort: failures are logged and reported as False
- list_pending() reflects storage contents at call time and is finite
- purge_expired() only removes COMPLETED records past their retention
"""

from __future__ import annotations

import json
import logging
import time
from typing import Iterator, Optional

from stt_pipeline.config import RECORD_SUFFIX, STATUS_PREFIX
from stt_pipeline.exceptions import (
    InvalidRequestError,
    MalformedRecordError,
    ObjectNotFoundError,
    RecordNotFoundError,
    StorageError,
)
from stt_pipeline.jobs.models import JobRecord, JobStatus, parse_source_uri
from stt_pipeline.storage.base import ObjectStore

logger = logging.getLogger(__name__)


class JobRecordStore:
    """Reads and writes JobRecords in one bucket of an ObjectStore."""

    def __init__(
        self,
        objects: ObjectStore,
        bucket: str,
        prefix: str = STATUS_PREFIX,
        suffix: str = RECORD_SUFFIX,
    ) -> None:
        self._objects = objects
        self.bucket = bucket
        self.prefix = prefix
        self.suffix = suffix

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def key_for(self, source_uri: str) -> str:
        """Derive the record key for a source URI."""
        bucket, path = parse_source_uri(source_uri)
        return "{}{}/{}{}".format(self.prefix, bucket, path, self.suffix)

    def is_record_key(self, key: str) -> bool:
        return (
            key.startswith(self.prefix)
            and key.endswith(self.suffix)
            and len(key) > len(self.prefix) + len(self.suffix)
        )

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def read(self, key: str) -> JobRecord:
        try:
            raw = self._objects.get(self.bucket, key)
        except ObjectNotFoundError:
            raise RecordNotFoundError(key)
        try:
            return JobRecord.from_dict(json.loads(raw.decode("utf-8")))
        except (ValueError, KeyError, TypeError, InvalidRequestError) as e:
            raise MalformedRecordError(key, e) from e

    def write(self, key: str, record: JobRecord) -> None:
        data = json.dumps(record.to_dict(), indent=2).encode("utf-8")
        self._objects.put(self.bucket, key, data, content_type="application/json")

    def exists(self, key: str) -> bool:
        return self._objects.exists(self.bucket, key)

    def delete(self, key: str) -> bool:
        try:
            self._objects.delete(self.bucket, key)
        except StorageError:
            logger.warning("Failed to delete job record %s", key, exc_info=True)
            return False
        return True

    def list_pending(self, prefix: Optional[str] = None) -> Iterator[str]:
        """Yield every object name under the status prefix.

        Shape filtering is left to the caller; this lists what is stored.
        """
        return self._objects.list(self.bucket, self.prefix if prefix is None else prefix)

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def purge_expired(self, ttl_seconds: float, now: Optional[float] = None) -> int:
        """Delete completed records whose completed_at is older than the TTL.

        RULES:
        - ERROR records are kept for operator inspection
        - PROCESSING records are never purged
        - Unreadable records are skipped, not deleted
        - Returns the number of records removed
        """
        now = time.time() if now is None else now
        removed = 0

        for key in list(self.list_pending()):
            if not self.is_record_key(key):
                continue
            try:
                record = self.read(key)
            except (RecordNotFoundError, MalformedRecordError, StorageError):
                logger.warning("Skipping unreadable record %s during purge", key)
                continue
            if record.status != JobStatus.COMPLETED or record.completed_at is None:
                continue
            if now - record.completed_at > ttl_seconds and self.delete(key):
                removed += 1
                logger.info(
                    "Purged record %s (completed %.0fs ago)", key, now - record.completed_at
                )

        return removed
