from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    """
    Application configuration.

    - Secrets are NEVER stored in code.
    - All sensitive values are injected via environment variables (.env).
    - Validation happens at startup (fail fast).
    """

    # --------------------------------------------------
    # Database
    # --------------------------------------------------
    DATABASE_URL: str = "sqlite:///./app.db"

    # --------------------------------------------------
    # Logging
    # --------------------------------------------------
    LOG_LEVEL: str = "INFO"

    # --------------------------------------------------
    # Voucher source (reporting subsystem)
    # --------------------------------------------------
    VOUCHER_SOURCE: str = "db"  # "db" | "http"
    REPORTING_BASE_URL: str | None = None
    REPORTING_API_TOKEN: str | None = None

    # Timeout applied to every outbound HTTP call (reporting + storage)
    HTTP_TIMEOUT_SECONDS: float = 20.0

    # --------------------------------------------------
    # Document storage
    # --------------------------------------------------
    STORAGE_BACKEND: str = "local"  # "local" | "http"
    STORAGE_DIR: str = "./storage/invoices"
    STORAGE_BASE_URL: str | None = None
    STORAGE_API_TOKEN: str | None = None

    # --------------------------------------------------
    # Invoices
    # --------------------------------------------------
    DUE_SOON_DAYS: int = 7
    INVOICE_LIST_LIMIT: int = 500

    class Config:
        env_file = ".env"
        extra = "ignore"   # Ignore unrelated env vars (Docker / CI friendly)

    def model_post_init(self, __context) -> None:
        """
        Fail fast when a remote backend is selected without its base URL.
        """
        if self.VOUCHER_SOURCE == "http" and not self.REPORTING_BASE_URL:
            raise ValueError("VOUCHER_SOURCE=http requires REPORTING_BASE_URL in .env")
        if self.STORAGE_BACKEND == "http" and not self.STORAGE_BASE_URL:
            raise ValueError("STORAGE_BACKEND=http requires STORAGE_BASE_URL in .env")


settings = Settings()
