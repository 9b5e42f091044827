"""Insurance application detection over stored PDF documents."""

from collections.abc import Iterable
from datetime import datetime, timezone

from app.detection.models import DetectionCandidate, DetectionResult
from app.logging.logger import Log
from app.pdf.base import BasePdfExtractor
from app.pdf.exceptions import PdfExtractionError
from app.storage.base import BaseObjectStore
from app.storage.exceptions import ObjectStoreError

APPLICATION_PHRASE = "application for insurance"
UNKNOWN_CARRIER = "unknown"
CARRIER_KEYWORDS: dict[str, str] = {
    "progressive": "progressive",
}


def detect_carrier(text: str) -> str:
    """Return the first known carrier named in lower-cased text."""
    for keyword, carrier in CARRIER_KEYWORDS.items():
        if keyword in text:
            return carrier
    return UNKNOWN_CARRIER


def _rank(timestamp: datetime | None) -> tuple[bool, datetime]:
    if timestamp is None:
        return (False, datetime.min.replace(tzinfo=timezone.utc))
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return (True, timestamp)


def _sort_key(candidate: DetectionCandidate) -> tuple[tuple[bool, datetime], ...]:
    return (_rank(candidate.timestamp), _rank(candidate.source_timestamp))


class ApplicationDetector:
    """Finds the insurance application among a customer's stored PDFs.

    Every PDF candidate is scanned. When several match, the one with the most
    recent timestamp wins, with the source document timestamp
    breaking ties. Detection only reads from object storage.
    """

    def __init__(self, store: BaseObjectStore, pdf_extractor: BasePdfExtractor) -> None:
        self._store = store
        self._pdf_extractor = pdf_extractor

    def find_application(self, candidates: Iterable[DetectionCandidate]) -> DetectionResult:
        matches: list[tuple[DetectionCandidate, DetectionResult]] = []
        for candidate in candidates:
            if not candidate.is_pdf:
                continue
            try:
                result = self._check(candidate)
            except ObjectStoreError as exc:
                Log.error(f"Could not scan {candidate.reference} for an application: {exc}")
                continue
            if result.found:
                matches.append((candidate, result))

        if not matches:
            Log.info("No application document found among candidates")
            return DetectionResult.not_found()

        matches.sort(key=lambda match: _sort_key(match[0]), reverse=True)
        winner = matches[0][1]
        Log.info(
            f"Selected application {winner.document_reference} "
            f"(carrier: {winner.carrier}) out of {len(matches)} match(es)"
        )
        return winner

    def check_single(self, reference: str) -> DetectionResult:
        """Check one stored object, given its reference URL or key."""
        if not reference:
            return DetectionResult.not_found()
        return self._check(DetectionCandidate(reference=reference))

    def find_in_prefix(self, customer_id: str) -> DetectionResult:
        """Scan every PDF stored under a customer's prefix."""
        objects = self._store.list_objects(f"{customer_id}/")
        candidates = [
            DetectionCandidate(
                reference=self._store.url_for(obj.key),
                content_type="application/pdf",
                timestamp=obj.last_modified,
            )
            for obj in objects
            if obj.key.lower().endswith(".pdf")
        ]
        return self.find_application(candidates)

    def _check(self, candidate: DetectionCandidate) -> DetectionResult:
        key = self._store.key_from_reference(candidate.reference)
        if key is None:
            Log.warning(f"Unrecognized object reference {candidate.reference}")
            return DetectionResult.not_found()

        text = self._extract_text(self._store.get_bytes(key), key)
        if APPLICATION_PHRASE not in text:
            return DetectionResult.not_found()

        return DetectionResult(
            found=True,
            document_reference=key,
            object_url=self._store.url_for(key),
            carrier=detect_carrier(text),
            document_id=candidate.document_id,
            timestamp=candidate.timestamp,
        )

    def _extract_text(self, pdf_bytes: bytes, key: str) -> str:
        try:
            return self._pdf_extractor.extract(pdf_bytes).lower()
        except PdfExtractionError as exc:
            Log.warning(f"Text extraction failed for {key}, scanning raw bytes: {exc}")
            return pdf_bytes.decode("latin-1").lower()
