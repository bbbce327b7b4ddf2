from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "postgres"
    db_username: str = "postgres"
    db_password: str = "secret"
    db_pool_max_size: int = 4
    company_table: str = "acc_portal_company_duplicate"

    storage_backend: str = "supabase"
    supabase_url: str = ""
    supabase_key: str = ""
    storage_bucket: str = "kyc-documents"
    local_storage_root: str = "storage"
    kra_pin_certificate_document_id: str = ""
    tcc_document_id: str = ""

    kra_portal_url: str = "https://itax.kra.go.ke/KRA-Portal/"
    browser_headless: bool = True
    browser_channels: str = "chrome,msedge,"
    navigation_timeout_ms: int = 60000
    default_timeout_ms: int = 30000
    login_outcome_timeout_ms: int = 5000
    login_outcome_poll_ms: int = 250
    download_timeout_ms: int = 60000

    max_login_attempts: int = 3
    captcha_ocr_attempts: int = 3
    pin_lookup_attempts: int = 10
    click_retry_attempts: int = 10

    ocr_language: str = "eng"
    ocr_tesseract_cmd: str = ""
    captcha_noise_chars: int = 2

    automation_feature: str = "password_validation"
    run_option: str = "all"
    selected_company_ids: str = ""
    worker_id: str = "worker-1"
    worker_start_index: int = 0
    worker_batch_size: int = 5

    download_root: str = "downloads"
    report_root: str = "reports"
    pdf_engine: str = "pdfplumber"

    wingu_login_url: str = "https://winguapps.co.ke/Home/Login"
    wingu_dashboard_url: str = "https://portal.winguapps.co.ke/Dashboard#tab-subscriptions"
    wingu_email: str = ""
    wingu_password: str = ""
    wingu_payroll_username: str = ""
    wingu_payroll_password: str = ""

    @field_validator(
        "max_login_attempts",
        "captcha_ocr_attempts",
        "pin_lookup_attempts",
        "click_retry_attempts",
    )
    @classmethod
    def at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("retry ceilings must be at least 1")
        return value

    @property
    def channel_candidates(self) -> list[str | None]:
        """Browser channels to try in order; an empty entry means bundled chromium."""
        return [part.strip() or None for part in self.browser_channels.split(",")]

    @property
    def selected_ids(self) -> list[int]:
        return [int(part) for part in self.selected_company_ids.split(",") if part.strip()]
