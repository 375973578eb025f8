"""Filesystem implementation of the ObjectStore interface.

WHY: A single-host deployment (and every test) needs durable storage
without an object-store service. Buckets map to directories under one
root; object names map to relative paths inside them.

HOW: put() writes to a temp file in the destination directory, fsyncs it,
and renames it over the target with os.replace(), which is atomic on the
same filesystem. list() walks the bucket directory lazily, each directory in name order.

RULES:
- Object names are "/"-separated and must stay inside their bucket
  (no absolute paths, no ".." segments)
- In-flight temp files (".tmp-" prefix) are never listed
- Empty directories left behind by delete() are pruned up to the bucket
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator

from stt_pipeline.exceptions import ObjectNotFoundError, StorageError
from stt_pipeline.storage.base import ObjectStore

logger = logging.getLogger(__name__)

_TEMP_PREFIX = ".tmp-"


class LocalObjectStore(ObjectStore):
    """Handles object storage operations on the local filesystem."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _bucket_dir(self, bucket: str) -> Path:
        if not bucket or "/" in bucket or bucket in (".", ".."):
            raise StorageError(bucket, "", "invalid bucket name")
        return self._root / bucket

    def _path(self, bucket: str, name: str) -> Path:
        parts = name.split("/")
        if not name or name.startswith("/") or any(p in ("", ".", "..") for p in parts):
            raise StorageError(bucket, name, "invalid object name")
        return self._bucket_dir(bucket).joinpath(*parts)

    def get(self, bucket: str, name: str) -> bytes:
        path = self._path(bucket, name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFoundError(bucket, name)
        except OSError as e:
            raise StorageError(bucket, name, e) from e

    def put(self, bucket: str, name: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        path = self._path(bucket, name)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, dir=str(path.parent))
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StorageError(bucket, name, e) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Failed to remove temp file: %s", tmp_name)

    def exists(self, bucket: str, name: str) -> bool:
        return self._path(bucket, name).is_file()

    def delete(self, bucket: str, name: str) -> None:
        path = self._path(bucket, name)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(bucket, name, e) from e
        self._prune_empty_dirs(path.parent, self._bucket_dir(bucket))

    def list(self, bucket: str, prefix: str = "") -> Iterator[str]:
        bucket_dir = self._bucket_dir(bucket)
        if not bucket_dir.is_dir():
            return
        try:
            for dirpath, dirnames, filenames in os.walk(bucket_dir):
                dirnames.sort()
                rel_dir = Path(dirpath).relative_to(bucket_dir).as_posix()
                for filename in sorted(filenames):
                    if filename.startswith(_TEMP_PREFIX):
                        continue
                    name = filename if rel_dir == "." else "{}/{}".format(rel_dir, filename)
                    if name.startswith(prefix):
                        yield name
        except OSError as e:
            raise StorageError(bucket, prefix, e) from e

    @staticmethod
    def _prune_empty_dirs(directory: Path, stop: Path) -> None:
        while directory != stop and stop in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                return
            directory = directory.parent
