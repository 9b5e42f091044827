import base64
import binascii
import re
from pathlib import Path
from typing import Any

from app.catalyst.client import CatalystClient
from app.catalyst.exceptions import RemoteApiError
from app.catalyst.models import RemoteDocument
from app.catalyst.retry import is_transient_error
from app.logging.logger import Log
from app.sync.exceptions import MaterializationError
from app.sync.models import DownloadMode, MaterializedContent

MAX_NAME_LENGTH = 180
SNIFF_BYTES = 200

CONTENT_TYPE_EXTENSIONS: dict[str, str] = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
    "application/vnd.ms-excel": ".xls",
    "text/plain": ".txt",
}

BASE64_FIELDS = ("File", "file", "FileBytesBase64", "FileByteArrayBase64")

_ILLEGAL_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_name(value: str | None) -> str:
    """Replace characters illegal in file names and cap the length."""
    return _ILLEGAL_NAME_CHARS.sub("_", str(value or ""))[:MAX_NAME_LENGTH]


def infer_extension(content_type: str | None) -> str:
    """Map a content type (parameters ignored) to a file extension, or ''."""
    if not content_type:
        return ""
    mime = content_type.split(";", 1)[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(mime, "")


def looks_like_text_or_html(payload: bytes) -> bool:
    """True when a payload looks like a JSON or HTML wrapper rather than a file."""
    head = payload[:SNIFF_BYTES].decode("utf-8", errors="ignore").lower()
    return head.startswith("{") or "<!doctype" in head or "<html" in head


def dedupe_path(path: Path) -> Path:
    """Return path, or the first free '<stem>-N<suffix>' sibling if it exists."""
    if not path.exists():
        return path
    counter = 1
    while True:
        candidate = path.with_name(f"{path.stem}-{counter}{path.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1


class ContentMaterializer:
    """Downloads a remote document into a local workspace.

    Tries the raw-bytes endpoint first and falls back to the properties
    endpoint (base64 content) when the raw payload is a text/HTML/JSON
    wrapper, is empty, or was refused with a non-retriable client error.
    """

    def __init__(self, client: CatalystClient) -> None:
        self._client = client

    def materialize(self, document: RemoteDocument, workspace: Path) -> MaterializedContent:
        base_name = sanitize_name(document.file_name or f"file_{document.document_id}")

        staged = self._try_raw(document, base_name, workspace)
        if staged is not None:
            return staged

        Log.debug(f"Falling back to properties download for document {document.document_id}")
        return self._from_properties(document, base_name, workspace)

    def _try_raw(
        self, document: RemoteDocument, base_name: str, workspace: Path
    ) -> MaterializedContent | None:
        try:
            raw = self._client.get_raw(document.document_id)
        except RemoteApiError as exc:
            if is_transient_error(exc):
                raise
            Log.warning(
                f"Raw download of document {document.document_id} refused "
                f"(HTTP {exc.status_code}); trying properties"
            )
            return None

        if not raw.content or looks_like_text_or_html(raw.content):
            return None

        path = self._write(workspace, base_name, raw.content_type, raw.content)
        return MaterializedContent(
            local_path=path,
            content_type=raw.content_type,
            size_bytes=len(raw.content),
            download_mode=DownloadMode.RAW,
            content_disposition=raw.content_disposition,
        )

    def _from_properties(
        self, document: RemoteDocument, base_name: str, workspace: Path
    ) -> MaterializedContent:
        properties = self._client.get_properties(document.document_id)
        encoded = self._first(properties, *BASE64_FIELDS)
        if not encoded:
            raise MaterializationError(
                f"Document {document.document_id} has no base64 content in its properties"
            )
        try:
            content = base64.b64decode(encoded)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise MaterializationError(
                f"Document {document.document_id} has undecodable base64 content: {exc}"
            ) from exc

        content_type = self._first(properties, "ContentType", "contentType") or document.content_type
        name = sanitize_name(self._first(properties, "FileName", "filename") or base_name)
        path = self._write(workspace, name, content_type, content)
        return MaterializedContent(
            local_path=path,
            content_type=content_type,
            size_bytes=len(content),
            download_mode=DownloadMode.PROPERTIES,
        )

    @staticmethod
    def _write(workspace: Path, name: str, content_type: str | None, content: bytes) -> Path:
        final_name = name or "file"
        if not Path(final_name).suffix:
            final_name += infer_extension(content_type)
        path = dedupe_path(workspace / sanitize_name(final_name))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    @staticmethod
    def _first(payload: dict[str, Any], *keys: str) -> Any:
        for key in keys:
            value = payload.get(key)
            if value:
                return value
        return None
