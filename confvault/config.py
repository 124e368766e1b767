"""confvault configuration — loaded from environment / .env file."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="CONFVAULT_", extra="ignore")

    env: str = "development"
    database_url: str = "sqlite+aiosqlite:///./confvault.db"

    # Required: the process refuses to start without it, otherwise secrets
    # stored under a previous key could never be decrypted again.
    encryption_key: str

    # Principal identity, set by the upstream identity-aware proxy
    principal_header: str = "X-Principal-Id"
    principal_email_header: str = "X-Principal-Email"
    authorized_emails: list[str] = []
    authorized_domains: list[str] = []

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    cors_origins: list[str] = ["http://localhost:3000"]

    @field_validator("encryption_key")
    @classmethod
    def _key_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("CONFVAULT_ENCRYPTION_KEY must not be empty")
        return v

    @property
    def email_allowlist_enabled(self) -> bool:
        return bool(self.authorized_emails or self.authorized_domains)


settings = Settings()
