import time
from collections.abc import Callable
from pathlib import Path

from app.logging.logger import Log
from app.storage.base import BaseObjectStore
from app.storage.exceptions import ObjectStoreError
from app.sync.exceptions import UploadError


def object_key(
    local_path: Path,
    customer_id: str,
    document_id: str | None,
    now_millis: int,
) -> str:
    """Build '{customer}/{document}{ext}', or a timestamped name without an id."""
    suffix = local_path.suffix
    if document_id:
        return f"{customer_id}/{document_id}{suffix}"
    return f"{customer_id}/{local_path.stem}_{now_millis}{suffix}"


class ObjectStoreOffloader:
    """Uploads staged files under deterministic per-customer keys."""

    def __init__(
        self,
        store: BaseObjectStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock

    def upload(
        self,
        local_path: Path,
        customer_id: str,
        document_id: str | None = None,
        content_type: str | None = None,
    ) -> str:
        """Upload local_path and return its reference URL.

        The local file is removed only after the upload succeeds.

        Raises:
            UploadError: if the file is missing or the store rejects it.
        """
        if not local_path.exists():
            raise UploadError(f"File not found: {local_path}")

        key = object_key(local_path, customer_id, document_id, int(self._clock() * 1000))
        try:
            url = self._store.put_file(local_path, key, content_type=content_type)
        except ObjectStoreError as exc:
            raise UploadError(str(exc)) from exc

        local_path.unlink(missing_ok=True)
        Log.info(f"Uploaded {local_path.name} to {key}")
        return url
