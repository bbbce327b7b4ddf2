from typing import Any

from psycopg import sql
from psycopg.types.json import Jsonb

from kra_automation.database.connection import get_connection


class ProgressRepository:
    """Persists the live progress of one automation so other processes can poll it.

    Each automation owns a `<Name>_AutomationProgress` table holding a single
    row with id 1.
    """

    def save(
        self,
        table: str,
        progress: int,
        status: str,
        current_company: str | None,
        logs: list[dict[str, Any]],
    ) -> None:
        query = sql.SQL(
            """
            INSERT INTO {table} (id, progress, status, current_company, logs, last_updated)
            VALUES (1, %s, %s, %s, %s, NOW())
            ON CONFLICT (id) DO UPDATE
            SET progress = EXCLUDED.progress,
                status = EXCLUDED.status,
                current_company = EXCLUDED.current_company,
                logs = EXCLUDED.logs,
                last_updated = NOW()
            """
        ).format(table=sql.Identifier(table))
        with get_connection() as conn:
            conn.execute(query, (progress, status, current_company, Jsonb(logs)))
            conn.commit()
