"""Abstract interface for object storage operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator


class ObjectStore(ABC):
    """Abstract base class for bucket/object storage backends.

    RULES:
    - put() makes the whole value visible at once; a concurrent get()
      sees either the old value or the new one, never a partial write
    - list() is lazy and reflects the bucket contents when it is called
    - delete() of a missing object is not an error
    """

    @abstractmethod
    def get(self, bucket: str, name: str) -> bytes:
        """
        Reads an object.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageError: If the read fails.
        """

    @abstractmethod
    def put(self, bucket: str, name: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        """
        Writes an object, replacing any previous value.

        Raises:
            StorageError: If the write fails.
        """

    @abstractmethod
    def exists(self, bucket: str, name: str) -> bool:
        """Returns True if the object exists."""

    @abstractmethod
    def delete(self, bucket: str, name: str) -> None:
        """
        Deletes an object if it exists.

        Raises:
            StorageError: If the delete fails.
        """

    @abstractmethod
    def list(self, bucket: str, prefix: str = "") -> Iterator[str]:
        """
        Yields object names in the bucket that start with prefix.

        Raises:
            StorageError: If the listing fails.
        """
