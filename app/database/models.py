from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


@dataclass
class CatalogEntry:
    """Represents a row from the contact files catalog table."""

    document_id: str
    customer_id: str
    file_name_reported: str | None = None
    content_type_reported: str | None = None
    size_reported: int | None = None
    created_on: datetime | None = None
    modified_on: datetime | None = None
    category: str | None = None
    description: str | None = None
    tags: Any = None
    download_mode: str | None = None
    object_url: str | None = None
    content_type_final: str | None = None
    size_final_bytes: int | None = None
    content_disposition: str | None = None
    is_insurance_id_card: bool = False
    insurance_number: str | None = None
    insurance_carrier: str | None = None
    insurance_effective: date | None = None
    insurance_expiration: date | None = None
    inserted_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pdf(self) -> bool:
        if self.content_type_final:
            return "pdf" in self.content_type_final.lower()
        return (self.object_url or "").lower().endswith(".pdf")
