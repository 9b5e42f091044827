from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True)
class StoredObject:
    """A listed object: its key and last-modified time."""

    key: str
    last_modified: datetime | None = None
    size: int | None = None


class BaseObjectStore(ABC):
    """Contract for key-addressed object storage."""

    @abstractmethod
    def put_file(self, local_path: Path, key: str, content_type: str | None = None) -> str:
        """Upload a local file under key and return its reference URL.

        Raises:
            ObjectStoreError: if the upload fails.
        """

    @abstractmethod
    def get_bytes(self, key: str) -> bytes:
        """Read an object's full content.

        Raises:
            ObjectStoreError: if the object cannot be read.
        """

    @abstractmethod
    def list_objects(self, prefix: str) -> list[StoredObject]:
        """List every object whose key starts with prefix."""

    @abstractmethod
    def url_for(self, key: str) -> str:
        """Build the reference URL of a key."""

    @abstractmethod
    def key_from_reference(self, reference: str) -> str | None:
        """Recover the key from a reference URL, or accept a bare key."""
