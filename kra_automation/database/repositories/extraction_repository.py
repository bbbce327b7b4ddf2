from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from kra_automation.database.connection import get_connection
from kra_automation.database.models import ExtractionHistory


class ExtractionRepository:
    """Per-feature extraction history tables.

    Every table has the same shape: one row per company key holding an
    `extractions` JSONB map from run date to the record captured that day.
    """

    def upsert_extraction(
        self,
        table: str,
        company_key: str,
        company_name: str,
        run_date_key: str,
        record: dict[str, Any],
    ) -> None:
        """Merge `{run_date_key: record}` into the company's history.

        A second call with the same key on the same table replaces that entry,
        other dates are left untouched.
        """
        query = sql.SQL(
            """
            INSERT INTO {table} (company_key, company_name, extractions, last_extraction_date)
            VALUES (%s, %s, %s, NOW())
            ON CONFLICT (company_key) DO UPDATE
            SET company_name = EXCLUDED.company_name,
                extractions = COALESCE({table}.extractions, '{{}}'::jsonb)
                              || EXCLUDED.extractions,
                last_extraction_date = NOW()
            """
        ).format(table=sql.Identifier(table))
        with get_connection() as conn:
            conn.execute(
                query,
                (company_key, company_name, Jsonb({run_date_key: record})),
            )
            conn.commit()

    def find(self, table: str, company_key: str) -> ExtractionHistory | None:
        """Return one company's history, or None when nothing was extracted yet."""
        query = sql.SQL(
            """
            SELECT company_key, company_name, extractions, last_extraction_date
            FROM {table}
            WHERE company_key = %s
            """
        ).format(table=sql.Identifier(table))
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, (company_key,))
                row = cur.fetchone()

        if row is None:
            return None
        return _to_history(row)

    def list_reports(self, table: str) -> list[ExtractionHistory]:
        """Return the stored history of every company for one feature."""
        query = sql.SQL(
            """
            SELECT company_key, company_name, extractions, last_extraction_date
            FROM {table}
            ORDER BY company_name
            """
        ).format(table=sql.Identifier(table))
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query)
                rows = cur.fetchall()

        return [_to_history(row) for row in rows]


def _to_history(row: dict[str, Any]) -> ExtractionHistory:
    return ExtractionHistory(
        company_key=row["company_key"],
        company_name=row["company_name"],
        extractions=row["extractions"] or {},
        last_extraction_date=row["last_extraction_date"],
    )
