from psycopg import sql
from psycopg.rows import dict_row

from kra_automation.database.connection import get_connection
from kra_automation.database.exceptions import CompanyNotFoundError
from kra_automation.database.models import CompanyRecord, CompanySelection

_COLUMNS = sql.SQL(
    "id, company_name, kra_pin, kra_password, kra_status, kra_last_checked"
)


class CompanyRepository:
    """Database operations for the company table.

    The table name is configurable because the portal data lives in a
    duplicated working copy of the main company table.
    """

    def __init__(self, table: str) -> None:
        self._table = sql.Identifier(table)

    def fetch(self, selection: CompanySelection) -> list[CompanyRecord]:
        """Return the companies covered by a selection, always in ascending id order."""
        if selection.mode == "selected":
            if not selection.ids:
                return []
            query = sql.SQL(
                "SELECT {cols} FROM {table} WHERE id = ANY(%s) ORDER BY id ASC"
            ).format(cols=_COLUMNS, table=self._table)
            params: tuple[object, ...] = (list(selection.ids),)
        elif selection.mode == "range":
            query = sql.SQL(
                "SELECT {cols} FROM {table} ORDER BY id ASC OFFSET %s LIMIT %s"
            ).format(cols=_COLUMNS, table=self._table)
            params = (selection.start_index, selection.batch_size)
        elif selection.mode == "all":
            query = sql.SQL("SELECT {cols} FROM {table} ORDER BY id ASC").format(
                cols=_COLUMNS, table=self._table
            )
            params = ()
        else:
            raise ValueError(f"Unknown selection mode: {selection.mode}")

        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()

        return [
            CompanyRecord(
                id=row["id"],
                company_name=row["company_name"],
                kra_pin=row["kra_pin"],
                kra_password=row["kra_password"],
                kra_status=row["kra_status"],
                kra_last_checked=row["kra_last_checked"],
            )
            for row in rows
        ]

    def update_status(self, company_id: int, status: str) -> None:
        """Write the last known portal status and stamp the check time.

        Raises:
            CompanyNotFoundError: if no company with this ID exists.
        """
        query = sql.SQL(
            """
            UPDATE {table}
            SET kra_status = %s, kra_last_checked = NOW()
            WHERE id = %s
            """
        ).format(table=self._table)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (status, company_id))
                if cur.rowcount == 0:
                    raise CompanyNotFoundError(f"Company {company_id} not found")
            conn.commit()
