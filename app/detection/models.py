from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.database.models import CatalogEntry


@dataclass(frozen=True)
class DetectionCandidate:
    """A stored document eligible for application scanning.

    Candidates are ranked by timestamp, then by source_timestamp. Rows written
    in the same sync share an insertion time, so the document's own remote
    timestamp breaks the tie.
    """

    reference: str
    content_type: str | None = None
    document_id: str | None = None
    timestamp: datetime | None = None
    source_timestamp: datetime | None = None

    @classmethod
    def from_catalog_entry(cls, entry: CatalogEntry) -> "DetectionCandidate | None":
        """Build a candidate from a catalog row; None unless a PDF was stored."""
        if not entry.object_url or not entry.is_pdf:
            return None
        return cls(
            reference=entry.object_url,
            content_type=entry.content_type_final,
            document_id=entry.document_id,
            timestamp=entry.inserted_at,
            source_timestamp=entry.created_on or entry.modified_on,
        )

    @property
    def is_pdf(self) -> bool:
        if self.content_type:
            return "pdf" in self.content_type.lower()
        return self.reference.lower().endswith(".pdf")


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of application detection."""

    found: bool
    document_reference: str | None = None
    object_url: str | None = None
    carrier: str | None = None
    document_id: str | None = None
    timestamp: datetime | None = None

    @classmethod
    def not_found(cls) -> "DetectionResult":
        return cls(found=False)

    def to_dict(self) -> dict[str, Any]:
        if not self.found:
            return {"found": False}
        return {
            "found": True,
            "fileKey": self.document_reference,
            "s3Url": self.object_url,
            "carrier": self.carrier,
            "documentId": self.document_id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
