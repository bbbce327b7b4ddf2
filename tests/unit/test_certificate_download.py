from pathlib import Path
from unittest.mock import MagicMock

import pytest

from kra_automation.database.models import CompanyRecord
from kra_automation.pdf.pdfplumber_adapter import PdfPlumberAdapter
from kra_automation.portal.models import PIN_CERTIFICATE, TCC_REPRINT, LoginOutcome
from kra_automation.portal.selectors import PortalSelectors
from kra_automation.tasks.certificate_download import (
    PinCertificateTask,
    TccTask,
    parse_tcc_rows,
)
from kra_automation.tasks.exceptions import DocumentVerificationError
from kra_automation.tasks.models import CompanyStatus
from kra_automation.tasks.verification import CertificateVerifier

COMPANY = CompanyRecord(id=4, company_name="Acme Ltd", kra_pin="P051234567A", kra_password="pw")

TCC_ROW = ["1", "P051234567A", "ACME LTD", "Active", "01/01/2026", "31/12/2026", "KRAWRN001"]


def _settings(tmp_path: Path) -> MagicMock:
    settings = MagicMock()
    settings.download_root = str(tmp_path)
    settings.kra_pin_certificate_document_id = "doc-pin"
    settings.tcc_document_id = "doc-tcc"
    return settings


def _session(download: Path | None = None) -> MagicMock:
    session = MagicMock()
    session.login.return_value = LoginOutcome.SUCCESS
    session.logout.return_value = True
    session.selectors = PortalSelectors()
    if download is not None:
        session.expect_download.return_value = download
    return session


def _cell(text: str) -> MagicMock:
    cell = MagicMock()
    cell.inner_text.return_value = text
    return cell


class TestCertificateVerifier:
    def test_returns_text(self, tmp_path: Path, certificate_pdf_bytes: bytes) -> None:
        path = tmp_path / "cert.pdf"
        path.write_bytes(certificate_pdf_bytes)

        text = CertificateVerifier(PdfPlumberAdapter()).verify(path, "P051234567A")

        assert "P051234567A" in text

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cert.pdf"
        path.write_bytes(b"")

        with pytest.raises(DocumentVerificationError, match="empty"):
            CertificateVerifier(PdfPlumberAdapter()).verify(path)

    def test_not_a_pdf(self, tmp_path: Path) -> None:
        path = tmp_path / "cert.pdf"
        path.write_bytes(b"<html>Session expired</html>")

        with pytest.raises(DocumentVerificationError, match="readable"):
            CertificateVerifier(PdfPlumberAdapter()).verify(path)

    def test_blank_pdf(self, tmp_path: Path, empty_pdf_bytes: bytes) -> None:
        path = tmp_path / "cert.pdf"
        path.write_bytes(empty_pdf_bytes)

        with pytest.raises(DocumentVerificationError, match="no text"):
            CertificateVerifier(PdfPlumberAdapter()).verify(path)

    def test_other_pin_is_only_a_warning(self, tmp_path: Path, certificate_pdf_bytes: bytes) -> None:
        path = tmp_path / "cert.pdf"
        path.write_bytes(certificate_pdf_bytes)

        assert CertificateVerifier(PdfPlumberAdapter()).verify(path, "A000000000Z")


class TestParseTccRows:
    def test_maps_fields(self) -> None:
        rows = parse_tcc_rows([TCC_ROW, ["No records found"]])

        assert rows == [
            {
                "serial_no": "1",
                "pin": "P051234567A",
                "taxpayer_name": "ACME LTD",
                "status": "Active",
                "certificate_date": "01/01/2026",
                "expiry_date": "31/12/2026",
                "certificate_serial_no": "KRAWRN001",
            }
        ]


class TestPinCertificateTask:
    def test_downloads_and_verifies(self, tmp_path: Path) -> None:
        pdf = tmp_path / "cert.pdf"
        verifier = MagicMock()
        session = _session(pdf)

        result = PinCertificateTask(_settings(tmp_path), verifier).run(COMPANY, session)

        assert result.status is CompanyStatus.COMPLETED
        session.navigate_to.assert_called_once_with(PIN_CERTIFICATE)
        verifier.verify.assert_called_once_with(pdf, "P051234567A")
        [document] = result.documents
        assert document.kind == "pdf_link"
        assert document.document_id == "doc-pin"
        assert document.content_type == "application/pdf"

    def test_verification_failure_propagates(self, tmp_path: Path) -> None:
        verifier = MagicMock()
        verifier.verify.side_effect = DocumentVerificationError("empty")
        session = _session(tmp_path / "cert.pdf")

        with pytest.raises(DocumentVerificationError):
            PinCertificateTask(_settings(tmp_path), verifier).run(COMPANY, session)

    def test_expired_password(self, tmp_path: Path) -> None:
        session = _session()
        session.login.return_value = LoginOutcome.PASSWORD_EXPIRED

        result = PinCertificateTask(_settings(tmp_path), MagicMock()).run(COMPANY, session)

        assert result.status is CompanyStatus.PASSWORD_EXPIRED
        session.navigate_to.assert_not_called()


class TestTccTask:
    def _page(self, has_link: bool) -> MagicMock:
        page = MagicMock()
        row = MagicMock()
        row.query_selector_all.return_value = [_cell(text) for text in TCC_ROW]
        page.query_selector_all.return_value = [row]
        page.query_selector.return_value = MagicMock() if has_link else None
        return page

    def test_with_certificate(self, tmp_path: Path) -> None:
        session = _session(tmp_path / "tcc.pdf")
        session.page = self._page(has_link=True)
        verifier = MagicMock()

        result = TccTask(_settings(tmp_path), verifier).run(COMPANY, session)

        session.navigate_to.assert_called_once_with(TCC_REPRINT)
        assert result.status is CompanyStatus.COMPLETED
        assert result.payload["certificate_status"] == "Active"
        assert result.payload["expiry_date"] == "31/12/2026"
        assert [doc.kind for doc in result.documents] == ["pdf_link", "screenshot_link"]
        assert result.documents[0].document_id is None
        assert result.documents[1].document_id == "doc-tcc"
        verifier.verify.assert_called_once()

    def test_without_download_link(self, tmp_path: Path) -> None:
        session = _session()
        session.page = self._page(has_link=False)

        result = TccTask(_settings(tmp_path), MagicMock()).run(COMPANY, session)

        assert result.status is CompanyStatus.NO_DOCUMENT
        session.expect_download.assert_not_called()
        assert [doc.kind for doc in result.documents] == ["screenshot_link"]
        session.page.screenshot.assert_called_once()
