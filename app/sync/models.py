from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class DownloadMode(str, Enum):
    RAW = "raw"
    PROPERTIES = "properties"


@dataclass(frozen=True)
class MaterializedContent:
    """A document staged on local disk, ready to offload."""

    local_path: Path
    content_type: str | None
    size_bytes: int
    download_mode: DownloadMode
    content_disposition: str | None = None


class OutcomeStatus(str, Enum):
    INGESTED = "ingested"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DocumentOutcome:
    """Result of ingesting one document during a sync run."""

    document_id: str
    status: OutcomeStatus
    reason: str = ""
    object_url: str | None = None
    content_type: str | None = None

    @classmethod
    def skipped(cls, document_id: str, reason: str) -> "DocumentOutcome":
        return cls(document_id=document_id, status=OutcomeStatus.SKIPPED, reason=reason)

    @property
    def uploaded(self) -> bool:
        return self.status is OutcomeStatus.INGESTED and self.object_url is not None


@dataclass
class SyncReport:
    """Summary of one customer's sync run."""

    customer_id: str
    total_enumerated: int = 0
    filtered_by_recency: int = 0
    newly_ingested: int = 0
    uploaded_count: int = 0
    detected_applications: list[dict[str, Any]] = field(default_factory=list)
    skipped: list[DocumentOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "customerId": self.customer_id,
            "totalDocs": self.total_enumerated,
            "filteredDocs": self.filtered_by_recency,
            "newDocs": self.newly_ingested,
            "uploaded": self.uploaded_count,
            "applications": list(self.detected_applications),
            "skipped": [
                {"documentId": o.document_id, "reason": o.reason} for o in self.skipped
            ],
        }
