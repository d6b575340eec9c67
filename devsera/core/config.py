from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env lives at the project root: devsera/core/config.py -> devsera/core -> devsera -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    secret_key: str = "change-me-in-production"
    database_url: str = "sqlite:///./devsera.db"
    # Comma separated origin list; "*" allows everything
    cors_origins: str = "*"
    rate_limit_per_minute: int = 60
    rate_limit_register_per_minute: int = 3
    # Checkout submissions per customer (limits syntax, e.g. "3/5minutes")
    checkout_rate_limit: str = "3/5minutes"
    admin_secret: str = ""             # Bootstrap of the first super admin: POST /admin/bootstrap
    upload_max_mb: int = 10
    environment: str = "development"
    log_level: str = "INFO"
    # Object storage bucket: files are written below storage_dir and served under storage_public_url
    storage_dir: str = str(_ROOT / "data" / "storage")
    storage_public_url: str = "/storage"
    # Accounts on the store's own domain skip the email provider allow-list
    store_email_domain: str = "devsera.store"
    currency_symbol: str = "₹"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("storage_public_url", mode="before")
    @classmethod
    def strip_public_url(cls, v: str | None) -> str:
        return (v or "/storage").strip().rstrip("/") or "/storage"

    @field_validator("store_email_domain", mode="before")
    @classmethod
    def normalize_domain(cls, v: str | None) -> str:
        return (v or "").strip().lower().lstrip("@")


settings = Settings()


def upload_max_bytes() -> int:
    return max(1, settings.upload_max_mb) * 1024 * 1024
