import shutil
import tempfile
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import psycopg

from app.catalyst.catalog_reader import RemoteCatalogReader
from app.catalyst.models import RemoteDocument
from app.database.connection import get_connection
from app.database.models import CatalogEntry
from app.database.repositories.catalog_repository import CatalogRepository
from app.detection.detector import ApplicationDetector
from app.detection.models import DetectionCandidate
from app.logging.logger import Log
from app.sync.materializer import ContentMaterializer
from app.sync.models import (
    DocumentOutcome,
    MaterializedContent,
    OutcomeStatus,
    SyncReport,
)
from app.sync.offloader import ObjectStoreOffloader

ConnectionFactory = Callable[[], AbstractContextManager[psycopg.Connection[Any]]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class _StagedDocument:
    document: RemoteDocument
    outcome: DocumentOutcome
    entry: CatalogEntry | None = None


class SyncOrchestrator:
    """Incrementally syncs one customer's remote documents into the catalog.

    Every new document is first materialized and offloaded with no database
    transaction open. The catalog rows are then written in one transaction,
    each in its own savepoint.
    """

    def __init__(
        self,
        *,
        reader: RemoteCatalogReader,
        materializer: ContentMaterializer,
        offloader: ObjectStoreOffloader,
        catalog: CatalogRepository,
        detector: ApplicationDetector | None = None,
        scratch_root: Path = Path("./downloads"),
        recency_days: int = 365,
        connection_factory: ConnectionFactory = get_connection,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._reader = reader
        self._materializer = materializer
        self._offloader = offloader
        self._catalog = catalog
        self._detector = detector
        self._scratch_root = scratch_root
        self._recency_days = recency_days
        self._connection_factory = connection_factory
        self._clock = clock

    def sync(self, customer_id: str) -> SyncReport:
        """Ingest a customer's new, recent documents and report the run.

        Raises:
            ValueError: if customer_id is not numeric.
        """
        if not customer_id.isdigit():
            raise ValueError(f"customer_id '{customer_id}' is not numeric")

        Log.info(f"Syncing documents for customer {customer_id}")
        documents = self._reader.list_all_documents(customer_id)
        recent = self.filter_recent(documents)
        report = SyncReport(
            customer_id=customer_id,
            total_enumerated=len(documents),
            filtered_by_recency=len(recent),
        )

        with self._connection_factory() as conn:
            with conn.transaction():
                existing = self._catalog.existing_document_ids(conn, customer_id)
        new_documents = [d for d in recent if d.document_id not in existing]
        if not new_documents:
            Log.info(f"No new documents for customer {customer_id}")
            return report

        staged = self._stage_all(customer_id, new_documents)
        results = self._record_all(staged)

        for _document, outcome in results:
            if outcome.status is OutcomeStatus.SKIPPED:
                report.skipped.append(outcome)
                continue
            report.newly_ingested += 1
            if outcome.uploaded:
                report.uploaded_count += 1

        detected = self._detect(results)
        if detected is not None:
            report.detected_applications.append(detected)

        Log.info(
            f"Customer {customer_id} sync done: {report.total_enumerated} listed, "
            f"{report.filtered_by_recency} recent, {report.newly_ingested} ingested, "
            f"{report.uploaded_count} uploaded, {len(report.skipped)} skipped"
        )
        return report

    def filter_recent(self, documents: list[RemoteDocument]) -> list[RemoteDocument]:
        """Keep documents created (or modified) inside the recency window."""
        cutoff = self._clock() - timedelta(days=self._recency_days)
        return [
            d
            for d in documents
            if d.recency_timestamp is not None and d.recency_timestamp > cutoff
        ]

    def _stage_all(
        self, customer_id: str, documents: list[RemoteDocument]
    ) -> list[_StagedDocument]:
        self._scratch_root.mkdir(parents=True, exist_ok=True)
        workspace = Path(tempfile.mkdtemp(prefix=f"{customer_id}-", dir=self._scratch_root))
        try:
            return [self._stage_one(customer_id, document, workspace) for document in documents]
        finally:
            shutil.rmtree(workspace, ignore_errors=True)
            if workspace.exists():
                Log.warning(f"Could not remove scratch directory {workspace}")

    def _stage_one(
        self, customer_id: str, document: RemoteDocument, workspace: Path
    ) -> _StagedDocument:
        """Download and offload one document; no database work happens here."""
        try:
            staged = self._materializer.materialize(document, workspace)
        except Exception as exc:
            Log.error(f"Download of document {document.document_id} failed: {exc}")
            return _StagedDocument(
                document, DocumentOutcome.skipped(document.document_id, f"download failed: {exc}")
            )

        object_url: str | None = None
        try:
            object_url = self._offloader.upload(
                staged.local_path,
                customer_id,
                document.document_id,
                content_type=staged.content_type,
            )
        except Exception as exc:
            Log.error(f"Upload of document {document.document_id} failed: {exc}")

        outcome = DocumentOutcome(
            document_id=document.document_id,
            status=OutcomeStatus.INGESTED,
            object_url=object_url,
            content_type=staged.content_type,
        )
        return _StagedDocument(
            document, outcome, self._build_entry(customer_id, document, staged, object_url)
        )

    def _record_all(
        self, staged: list[_StagedDocument]
    ) -> list[tuple[RemoteDocument, DocumentOutcome]]:
        """Write every staged entry in one transaction, one savepoint per document."""
        if not any(item.entry is not None for item in staged):
            return [(item.document, item.outcome) for item in staged]

        results: list[tuple[RemoteDocument, DocumentOutcome]] = []
        with self._connection_factory() as conn:
            with conn.transaction():
                for item in staged:
                    outcome = item.outcome
                    if item.entry is not None:
                        outcome = self._record_one(conn, item.entry, outcome)
                    results.append((item.document, outcome))
        return results

    def _record_one(
        self,
        conn: psycopg.Connection[Any],
        entry: CatalogEntry,
        outcome: DocumentOutcome,
    ) -> DocumentOutcome:
        try:
            with conn.transaction():
                self._catalog.upsert(conn, entry)
        except (psycopg.DataError, psycopg.IntegrityError) as exc:
            Log.error(f"Catalog write for document {entry.document_id} rejected: {exc}")
            return DocumentOutcome.skipped(entry.document_id, f"catalog write failed: {exc}")
        return outcome

    def _detect(
        self, results: list[tuple[RemoteDocument, DocumentOutcome]]
    ) -> dict[str, Any] | None:
        if self._detector is None:
            return None
        candidates = [
            DetectionCandidate(
                reference=outcome.object_url,
                content_type=outcome.content_type,
                document_id=outcome.document_id,
                timestamp=document.recency_timestamp,
            )
            for document, outcome in results
            if outcome.uploaded
            and outcome.object_url is not None
            and "pdf" in (outcome.content_type or "").lower()
        ]
        if not candidates:
            return None
        try:
            result = self._detector.find_application(candidates)
        except Exception as exc:
            Log.error(f"Application detection during sync failed: {exc}")
            return None
        return result.to_dict() if result.found else None

    @staticmethod
    def _build_entry(
        customer_id: str,
        document: RemoteDocument,
        staged: MaterializedContent,
        object_url: str | None,
    ) -> CatalogEntry:
        return CatalogEntry(
            document_id=document.document_id,
            customer_id=customer_id,
            file_name_reported=document.file_name,
            content_type_reported=document.content_type,
            size_reported=document.size,
            created_on=document.created_on,
            modified_on=document.modified_on,
            category=document.category,
            description=document.description,
            tags=document.tags,
            download_mode=staged.download_mode.value,
            object_url=object_url,
            content_type_final=staged.content_type,
            size_final_bytes=staged.size_bytes,
            content_disposition=staged.content_disposition,
        )
