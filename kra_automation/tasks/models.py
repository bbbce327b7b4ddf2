from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from kra_automation.database.models import CompanyRecord
from kra_automation.tasks.exceptions import MissingCredentialsError


class CompanyStatus(str, Enum):
    """Terminal status of one company in one run."""

    VALID = "Valid"
    INVALID = "Invalid"
    PASSWORD_EXPIRED = "Password Expired"
    LOCKED = "Locked"
    PIN_MISSING = "Pin Missing"
    PASSWORD_MISSING = "Password Missing"
    PIN_AND_PASSWORD_MISSING = "Pin and Password Missing"
    ERROR = "Error"
    COMPLETED = "Completed"
    SKIPPED = "Skipped"
    NO_DOCUMENT = "No Document"
    INVALID_PIN = "Invalid Pin"
    INDIVIDUAL_PIN = "Individual Pin"
    NO_VAT = "No VAT"
    NO_RECORDS = "No Records"
    COMPANY_NOT_FOUND = "Company Not Found"


def missing_credentials_status(company: CompanyRecord) -> CompanyStatus | None:
    """Classify a company whose PIN or password is absent; None when both are present."""
    has_pin = bool(company.kra_pin and company.kra_pin.strip())
    has_password = bool(company.kra_password and company.kra_password.strip())
    if not has_pin and not has_password:
        return CompanyStatus.PIN_AND_PASSWORD_MISSING
    if not has_pin:
        return CompanyStatus.PIN_MISSING
    if not has_password:
        return CompanyStatus.PASSWORD_MISSING
    return None


def require_credentials(company: CompanyRecord) -> tuple[str, str]:
    """Return the PIN and password, raising MissingCredentialsError when either is blank."""
    pin, password = company.kra_pin, company.kra_password
    if not pin or not pin.strip() or not password or not password.strip():
        raise MissingCredentialsError(f"{company.company_name} has no usable PIN or password")
    return pin, password


@dataclass
class DocumentBlob:
    """A file produced by a task, waiting to be uploaded.

    `kind` is the record field that receives the document URL after upload.
    `document_id` links the upload to a KYC document type when set.
    """

    path: Path
    kind: str
    content_type: str
    document_id: str | None = None


@dataclass
class ExtractionResult:
    """Outcome of one task for one company: a payload, or an error with partial data."""

    company: CompanyRecord
    feature: str
    status: CompanyStatus
    payload: dict[str, Any] = field(default_factory=dict)
    documents: list[DocumentBlob] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def success(
        cls,
        company: CompanyRecord,
        feature: str,
        status: CompanyStatus,
        payload: dict[str, Any] | None = None,
        documents: list[DocumentBlob] | None = None,
    ) -> "ExtractionResult":
        return cls(
            company=company,
            feature=feature,
            status=status,
            payload=payload or {},
            documents=documents or [],
        )

    @classmethod
    def failure(
        cls,
        company: CompanyRecord,
        feature: str,
        error: str,
        status: CompanyStatus = CompanyStatus.ERROR,
        payload: dict[str, Any] | None = None,
    ) -> "ExtractionResult":
        return cls(
            company=company,
            feature=feature,
            status=status,
            payload=payload or {},
            error=error,
        )

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_record(self) -> dict[str, Any]:
        """JSON-ready record stored under the run date."""
        record: dict[str, Any] = {"status": self.status.value, **self.payload}
        if self.error is not None:
            record["error"] = self.error
        return record
