from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None and value != "":
            return value
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a provider timestamp into an aware UTC datetime.

    Naive values are taken as UTC. Unparseable values yield None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def document_id_of(payload: Mapping[str, Any]) -> str | None:
    value = _first(payload, "Id", "FileId", "id", "DocumentId")
    return str(value) if value is not None else None


@dataclass(frozen=True)
class RemoteDocument:
    """Snapshot of one document as listed by the remote document API."""

    document_id: str
    file_name: str | None = None
    content_type: str | None = None
    size: int | None = None
    created_on: datetime | None = None
    modified_on: datetime | None = None
    category: str | None = None
    description: str | None = None
    tags: Any = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RemoteDocument":
        """Build from a listing item, accepting the provider's alternate keys.

        Raises:
            ValueError: if the item carries no document id.
        """
        document_id = document_id_of(payload)
        if document_id is None:
            raise ValueError("Listing item has no document id")
        return cls(
            document_id=document_id,
            file_name=_first(payload, "FileName"),
            content_type=_first(payload, "ContentType"),
            size=_as_int(_first(payload, "FileSize", "Length")),
            created_on=parse_timestamp(_first(payload, "CreatedOn", "CreatedDate")),
            modified_on=parse_timestamp(_first(payload, "ModifiedOn", "UpdatedDate")),
            category=_first(payload, "Category"),
            description=_first(payload, "Description"),
            tags=payload.get("Tags"),
            raw=dict(payload),
        )

    @property
    def recency_timestamp(self) -> datetime | None:
        """Timestamp used by the recency window: created, else modified."""
        return self.created_on or self.modified_on


@dataclass(frozen=True)
class ListingPage:
    """One page of the files-by-contact listing."""

    items: list[dict[str, Any]]
    pages_total: int | None = None
