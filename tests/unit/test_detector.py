from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from app.database.models import CatalogEntry
from app.detection.detector import ApplicationDetector, detect_carrier
from app.detection.models import DetectionCandidate
from app.pdf.base import BasePdfExtractor
from app.pdf.exceptions import PdfExtractionError
from app.pdf.pdfplumber_adapter import PdfPlumberAdapter
from app.storage.base import BaseObjectStore, StoredObject
from app.storage.exceptions import ObjectStoreError

BASE_URL = "https://files.s3.us-east-1.amazonaws.com/"

T1 = datetime(2026, 1, 1, tzinfo=timezone.utc)
T2 = datetime(2026, 2, 1, tzinfo=timezone.utc)
T3 = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _make_store(objects: dict[str, bytes]) -> MagicMock:
    store = MagicMock(spec=BaseObjectStore)
    store.url_for.side_effect = lambda key: BASE_URL + key

    def key_from_reference(reference: str) -> str | None:
        if reference.startswith(BASE_URL):
            return reference[len(BASE_URL):]
        return None if reference.startswith("http") else reference

    def get_bytes(key: str) -> bytes:
        if key not in objects:
            raise ObjectStoreError(f"Download of {key} failed")
        return objects[key]

    store.key_from_reference.side_effect = key_from_reference
    store.get_bytes.side_effect = get_bytes
    return store


def _candidate(key: str, timestamp: datetime | None = None, **kwargs: str) -> DetectionCandidate:
    return DetectionCandidate(
        reference=BASE_URL + key,
        content_type=kwargs.get("content_type", "application/pdf"),
        document_id=kwargs.get("document_id"),
        timestamp=timestamp,
    )


class TestDetectCarrier:
    def test_known_carrier(self) -> None:
        assert detect_carrier("progressive casualty insurance") == "progressive"

    def test_unknown_carrier(self) -> None:
        assert detect_carrier("acme mutual") == "unknown"


class TestFindApplication:
    def test_picks_most_recent_match(self, application_pdf_bytes: bytes) -> None:
        store = _make_store(
            {"1/a.pdf": application_pdf_bytes, "1/b.pdf": application_pdf_bytes,
             "1/c.pdf": application_pdf_bytes}
        )
        detector = ApplicationDetector(store, PdfPlumberAdapter())

        result = detector.find_application(
            [_candidate("1/a.pdf", T1), _candidate("1/c.pdf", T3), _candidate("1/b.pdf", T2)]
        )

        assert result.found
        assert result.document_reference == "1/c.pdf"
        assert result.object_url == BASE_URL + "1/c.pdf"
        assert result.carrier == "progressive"
        assert result.timestamp == T3

    def test_scans_every_pdf_even_after_a_match(
        self, application_pdf_bytes: bytes, invoice_pdf_bytes: bytes
    ) -> None:
        store = _make_store(
            {"1/old.pdf": application_pdf_bytes, "1/inv.pdf": invoice_pdf_bytes,
             "1/new.pdf": application_pdf_bytes}
        )
        detector = ApplicationDetector(store, PdfPlumberAdapter())

        result = detector.find_application(
            [_candidate("1/old.pdf", T1), _candidate("1/inv.pdf", T3), _candidate("1/new.pdf", T2)]
        )

        assert store.get_bytes.call_count == 3
        assert result.document_reference == "1/new.pdf"

    def test_undated_match_loses_to_dated(self, application_pdf_bytes: bytes) -> None:
        store = _make_store({"1/a.pdf": application_pdf_bytes, "1/b.pdf": application_pdf_bytes})
        detector = ApplicationDetector(store, PdfPlumberAdapter())

        result = detector.find_application([_candidate("1/a.pdf"), _candidate("1/b.pdf", T1)])

        assert result.document_reference == "1/b.pdf"

    def test_skips_non_pdf_candidates(self, application_pdf_bytes: bytes) -> None:
        store = _make_store({"1/a.jpg": application_pdf_bytes})
        detector = ApplicationDetector(store, PdfPlumberAdapter())

        result = detector.find_application([_candidate("1/a.jpg", T1, content_type="image/jpeg")])

        assert not result.found
        store.get_bytes.assert_not_called()

    def test_unreadable_object_is_skipped(self, application_pdf_bytes: bytes) -> None:
        store = _make_store({"1/good.pdf": application_pdf_bytes})
        detector = ApplicationDetector(store, PdfPlumberAdapter())

        result = detector.find_application(
            [_candidate("1/missing.pdf", T3), _candidate("1/good.pdf", T1)]
        )

        assert result.document_reference == "1/good.pdf"

    def test_no_match_returns_not_found(self, invoice_pdf_bytes: bytes) -> None:
        store = _make_store({"1/inv.pdf": invoice_pdf_bytes})
        detector = ApplicationDetector(store, PdfPlumberAdapter())

        result = detector.find_application([_candidate("1/inv.pdf", T1)])

        assert not result.found
        assert result.to_dict() == {"found": False}

    def test_empty_candidates(self) -> None:
        detector = ApplicationDetector(_make_store({}), PdfPlumberAdapter())
        assert not detector.find_application([]).found

    def test_foreign_reference_is_not_scanned(self) -> None:
        store = _make_store({})
        detector = ApplicationDetector(store, PdfPlumberAdapter())

        result = detector.find_application(
            [DetectionCandidate(reference="https://example.com/x.pdf", timestamp=T1)]
        )

        assert not result.found
        store.get_bytes.assert_not_called()

    def test_falls_back_to_raw_bytes_when_extraction_fails(self) -> None:
        store = _make_store({"1/raw.pdf": b"%PDF Application For Insurance (Progressive)"})
        extractor = MagicMock(spec=BasePdfExtractor)
        extractor.extract.side_effect = PdfExtractionError("broken")
        detector = ApplicationDetector(store, extractor)

        result = detector.find_application([_candidate("1/raw.pdf", T1)])

        assert result.found
        assert result.carrier == "progressive"

    def test_carries_document_id(self, application_pdf_bytes: bytes) -> None:
        store = _make_store({"1/a.pdf": application_pdf_bytes})
        detector = ApplicationDetector(store, PdfPlumberAdapter())

        result = detector.find_application([_candidate("1/a.pdf", T2, document_id="77")])

        assert result.to_dict() == {
            "found": True,
            "fileKey": "1/a.pdf",
            "s3Url": BASE_URL + "1/a.pdf",
            "carrier": "progressive",
            "documentId": "77",
            "timestamp": T2.isoformat(),
        }

    def test_same_insertion_time_falls_back_to_document_timestamp(
        self, application_pdf_bytes: bytes
    ) -> None:
        store = _make_store(
            {"1/t1.pdf": application_pdf_bytes, "1/t3.pdf": application_pdf_bytes,
             "1/t2.pdf": application_pdf_bytes}
        )
        detector = ApplicationDetector(store, PdfPlumberAdapter())
        inserted = datetime(2026, 10, 1, tzinfo=timezone.utc)
        entries = [
            CatalogEntry(
                document_id=name,
                customer_id="1",
                object_url=BASE_URL + f"1/{name}.pdf",
                content_type_final="application/pdf",
                created_on=created_on,
                inserted_at=inserted,
            )
            for name, created_on in (("t1", T1), ("t3", T3), ("t2", T2))
        ]
        candidates = [DetectionCandidate.from_catalog_entry(e) for e in entries]

        result = detector.find_application([c for c in candidates if c is not None])

        assert result.document_id == "t3"
        assert result.timestamp == inserted

    def test_source_timestamp_breaks_equal_timestamps(
        self, application_pdf_bytes: bytes
    ) -> None:
        store = _make_store({"1/a.pdf": application_pdf_bytes, "1/b.pdf": application_pdf_bytes})
        detector = ApplicationDetector(store, PdfPlumberAdapter())
        older = DetectionCandidate(
            reference=BASE_URL + "1/a.pdf", document_id="a", timestamp=T3, source_timestamp=T1
        )
        newer = DetectionCandidate(
            reference=BASE_URL + "1/b.pdf", document_id="b", timestamp=T3, source_timestamp=T2
        )

        assert detector.find_application([newer, older]).document_id == "b"


class TestCheckSingle:
    def test_detects_by_bare_key(self, application_pdf_bytes: bytes) -> None:
        detector = ApplicationDetector(
            _make_store({"9/app.pdf": application_pdf_bytes}), PdfPlumberAdapter()
        )
        assert detector.check_single("9/app.pdf").found

    def test_empty_reference(self) -> None:
        detector = ApplicationDetector(_make_store({}), PdfPlumberAdapter())
        assert not detector.check_single("").found

    def test_store_error_propagates(self) -> None:
        detector = ApplicationDetector(_make_store({}), PdfPlumberAdapter())
        with pytest.raises(ObjectStoreError):
            detector.check_single("9/missing.pdf")


class TestFindInPrefix:
    def test_scans_pdf_objects_under_customer_prefix(self, application_pdf_bytes: bytes) -> None:
        store = _make_store({"5/a.pdf": application_pdf_bytes, "5/b.PDF": application_pdf_bytes})
        store.list_objects.return_value = [
            StoredObject(key="5/a.pdf", last_modified=T1),
            StoredObject(key="5/b.PDF", last_modified=T2),
            StoredObject(key="5/c.jpg", last_modified=T3),
        ]
        detector = ApplicationDetector(store, PdfPlumberAdapter())

        result = detector.find_in_prefix("5")

        store.list_objects.assert_called_once_with("5/")
        assert result.document_reference == "5/b.PDF"


class TestDetectionCandidate:
    def test_from_catalog_entry(self) -> None:
        entry = CatalogEntry(
            document_id="1",
            customer_id="2",
            object_url=BASE_URL + "2/1.pdf",
            content_type_final="application/pdf",
            inserted_at=T2,
            created_on=T1,
        )
        candidate = DetectionCandidate.from_catalog_entry(entry)
        assert candidate is not None
        assert candidate.timestamp == T2
        assert candidate.source_timestamp == T1
        assert candidate.is_pdf

    def test_entry_without_object_is_skipped(self) -> None:
        assert DetectionCandidate.from_catalog_entry(CatalogEntry("1", "2")) is None

    def test_non_pdf_entry_is_skipped(self) -> None:
        entry = CatalogEntry(
            "1", "2", object_url=BASE_URL + "2/1.jpg", content_type_final="image/jpeg"
        )
        assert DetectionCandidate.from_catalog_entry(entry) is None

    def test_entry_without_content_type_uses_url_suffix(self) -> None:
        entry = CatalogEntry(
            "1", "2", object_url=BASE_URL + "2/1.pdf", modified_on=T1
        )
        candidate = DetectionCandidate.from_catalog_entry(entry)
        assert candidate is not None
        assert candidate.source_timestamp == T1

    def test_pdf_inferred_from_reference_suffix(self) -> None:
        assert DetectionCandidate(reference="x/y.PDF").is_pdf
        assert not DetectionCandidate(reference="x/y.png").is_pdf
