from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.database.connection import get_connection, table_identifier
from app.database.models import CatalogEntry

_COLUMNS = (
    "document_id",
    "customer_id",
    "file_name_reported",
    "content_type_reported",
    "size_reported",
    "created_on",
    "modified_on",
    "category",
    "description",
    "tags",
    "download_mode",
    "object_url",
    "content_type_final",
    "size_final_bytes",
    "content_disposition",
    "is_insurance_id_card",
    "insurance_number",
    "insurance_carrier",
    "insurance_effective",
    "insurance_expiration",
)


class CatalogRepository:
    """Database operations for the document catalog table.

    One row per remote document id. Writes take a caller-owned connection so a
    whole sync run can share a single transaction.
    """

    def __init__(self, table: str = "qq.contact_files") -> None:
        self._table = table_identifier(table)

    def existing_document_ids(
        self, conn: psycopg.Connection[Any], customer_id: str
    ) -> set[str]:
        """Return ids already catalogued for a customer with a stored object.

        Rows recorded without an object URL (failed upload) are left out so
        the next sync picks them up again.
        """
        query = sql.SQL(
            "SELECT document_id FROM {} WHERE customer_id = %s AND object_url IS NOT NULL"
        ).format(self._table)
        with conn.cursor() as cur:
            cur.execute(query, (int(customer_id),))
            rows = cur.fetchall()
        return {str(row[0]) for row in rows}

    def upsert(self, conn: psycopg.Connection[Any], entry: CatalogEntry) -> None:
        """Insert a catalog row or refresh every derived field on id conflict."""
        columns = sql.SQL(", ").join(sql.Identifier(c) for c in _COLUMNS)
        placeholders = sql.SQL(", ").join(sql.Placeholder() for _ in _COLUMNS)
        updates = sql.SQL(", ").join(
            sql.SQL("{col} = EXCLUDED.{col}").format(col=sql.Identifier(c))
            for c in _COLUMNS
            if c != "document_id"
        )
        query = sql.SQL(
            """
            INSERT INTO {table} ({columns}, inserted_at, updated_at)
            VALUES ({placeholders}, NOW(), NOW())
            ON CONFLICT (document_id) DO UPDATE SET
                {updates},
                updated_at = NOW()
            """
        ).format(
            table=self._table,
            columns=columns,
            placeholders=placeholders,
            updates=updates,
        )
        with conn.cursor() as cur:
            cur.execute(query, self._params(entry))

    def list_for_customer(self, customer_id: str) -> list[CatalogEntry]:
        """Load every catalog row for a customer, newest first."""
        query = sql.SQL(
            """
            SELECT {columns}, inserted_at, updated_at
            FROM {table}
            WHERE customer_id = %s
            ORDER BY inserted_at DESC
            """
        ).format(
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in _COLUMNS),
            table=self._table,
        )
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, (int(customer_id),))
                rows = cur.fetchall()
        return [self._to_entry(row) for row in rows]

    @staticmethod
    def _params(entry: CatalogEntry) -> tuple[Any, ...]:
        return (
            entry.document_id,
            int(entry.customer_id),
            entry.file_name_reported,
            entry.content_type_reported,
            entry.size_reported,
            entry.created_on,
            entry.modified_on,
            entry.category,
            entry.description,
            Jsonb(entry.tags) if entry.tags is not None else None,
            entry.download_mode,
            entry.object_url,
            entry.content_type_final,
            entry.size_final_bytes,
            entry.content_disposition,
            entry.is_insurance_id_card,
            entry.insurance_number,
            entry.insurance_carrier,
            entry.insurance_effective,
            entry.insurance_expiration,
        )

    @staticmethod
    def _to_entry(row: dict[str, Any]) -> CatalogEntry:
        return CatalogEntry(
            document_id=str(row["document_id"]),
            customer_id=str(row["customer_id"]),
            file_name_reported=row["file_name_reported"],
            content_type_reported=row["content_type_reported"],
            size_reported=row["size_reported"],
            created_on=row["created_on"],
            modified_on=row["modified_on"],
            category=row["category"],
            description=row["description"],
            tags=row["tags"],
            download_mode=row["download_mode"],
            object_url=row["object_url"],
            content_type_final=row["content_type_final"],
            size_final_bytes=row["size_final_bytes"],
            content_disposition=row["content_disposition"],
            is_insurance_id_card=bool(row["is_insurance_id_card"]),
            insurance_number=row["insurance_number"],
            insurance_carrier=row["insurance_carrier"],
            insurance_effective=row["insurance_effective"],
            insurance_expiration=row["insurance_expiration"],
            inserted_at=row["inserted_at"],
            updated_at=row["updated_at"],
        )
