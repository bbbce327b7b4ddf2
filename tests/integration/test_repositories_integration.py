from typing import Any

import psycopg
import pytest
from psycopg import sql

from kra_automation.database.exceptions import CompanyNotFoundError
from kra_automation.database.models import CompanySelection
from kra_automation.database.repositories.company_repository import CompanyRepository
from kra_automation.database.repositories.extraction_repository import ExtractionRepository
from kra_automation.database.repositories.progress_repository import ProgressRepository


@pytest.mark.integration
class TestCompanyRepository:
    def test_all_in_id_order(self, seeded_companies: str) -> None:
        companies = CompanyRepository(seeded_companies).fetch(CompanySelection.everything())

        assert [company.id for company in companies] == [1, 2, 3, 4]
        assert companies[1].kra_pin is None

    def test_selected(self, seeded_companies: str) -> None:
        companies = CompanyRepository(seeded_companies).fetch(CompanySelection.explicit([4, 2, 99]))

        assert [company.id for company in companies] == [2, 4]

    def test_range_shard(self, seeded_companies: str) -> None:
        companies = CompanyRepository(seeded_companies).fetch(CompanySelection.shard(1, 2))

        assert [company.id for company in companies] == [2, 3]

    def test_update_status(self, seeded_companies: str, db_conn: psycopg.Connection[Any]) -> None:
        CompanyRepository(seeded_companies).update_status(3, "Locked")

        with db_conn.cursor() as cur:
            cur.execute(
                sql.SQL("SELECT kra_status, kra_last_checked FROM {table} WHERE id = 3").format(
                    table=sql.Identifier(seeded_companies)
                )
            )
            row = cur.fetchone()
        assert row is not None
        assert row[0] == "Locked"
        assert row[1] is not None

    def test_update_status_missing_company(self, seeded_companies: str) -> None:
        with pytest.raises(CompanyNotFoundError):
            CompanyRepository(seeded_companies).update_status(404, "Valid")


@pytest.mark.integration
class TestExtractionRepository:
    def test_same_day_upsert_replaces_entry(self, extraction_table: str) -> None:
        repo = ExtractionRepository()

        repo.upsert_extraction(extraction_table, "P1", "Acme", "2026-10-17", {"status": "Error"})
        repo.upsert_extraction(extraction_table, "P1", "Acme", "2026-10-17", {"status": "Valid"})

        history = repo.find(extraction_table, "P1")
        assert history is not None
        assert history.extractions == {"2026-10-17": {"status": "Valid"}}
        assert history.last_extraction_date is not None

    def test_other_dates_preserved(self, extraction_table: str) -> None:
        repo = ExtractionRepository()

        repo.upsert_extraction(extraction_table, "P1", "Acme", "2026-10-16", {"status": "Invalid"})
        repo.upsert_extraction(extraction_table, "P1", "Acme Ltd", "2026-10-17", {"status": "Valid"})

        history = repo.find(extraction_table, "P1")
        assert history is not None
        assert set(history.extractions) == {"2026-10-16", "2026-10-17"}
        assert history.company_name == "Acme Ltd"

    def test_list_reports(self, extraction_table: str) -> None:
        repo = ExtractionRepository()
        repo.upsert_extraction(extraction_table, "P2", "Beta", "2026-10-17", {"status": "Valid"})
        repo.upsert_extraction(extraction_table, "P1", "Acme", "2026-10-17", {"status": "Valid"})

        reports = repo.list_reports(extraction_table)

        assert [report.company_name for report in reports] == ["Acme", "Beta"]

    def test_find_missing(self, extraction_table: str) -> None:
        assert ExtractionRepository().find(extraction_table, "nobody") is None


@pytest.mark.integration
class TestProgressRepository:
    def test_single_row_overwritten(self, progress_table: str, db_conn: psycopg.Connection[Any]) -> None:
        repo = ProgressRepository()

        repo.save(progress_table, 50, "Running", "Acme", [{"company": "Acme", "status": "Valid"}])
        repo.save(progress_table, 100, "Completed", None, [])

        with db_conn.cursor() as cur:
            cur.execute(
                sql.SQL("SELECT id, progress, status, current_company, logs FROM {table}").format(
                    table=sql.Identifier(progress_table)
                )
            )
            rows = cur.fetchall()
        assert rows == [(1, 100, "Completed", None, [])]
