"""
Application settings loaded from the environment (and an optional .env file).

The settings object is built once at startup and handed to the store,
mutation and notification clients. Values are normalized the way the
deployed environment tends to deliver them: surrounding whitespace, inline
``// comments`` and wrapping quotes are stripped.
"""
import re
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_MUTASI_URL = "https://orkut.ftvpn.me/api/mutasi"

_WRAPPING_QUOTES = re.compile(r"^['\"`]+|['\"`]+$")


def normalize_env(value: Optional[str]) -> str:
    """Trim, drop an inline ``// comment`` and strip wrapping quotes."""
    if not value:
        return ""
    out = value.strip()
    # URLs contain '//' after the scheme, so only cut a comment that follows it
    scheme = re.match(r"^['\"`]*https?://", out)
    search_from = scheme.end() if scheme else 0
    comment_index = out.find("//", search_from)
    if comment_index != -1:
        out = out[:comment_index].strip()
    return _WRAPPING_QUOTES.sub("", out).strip()


class Settings(BaseSettings):
    # GitHub contents API (transaction store)
    github_token: str = Field(default="", description="Token with contents:write on the data repo")
    repo_owner: str = Field(default="", description="Owner of the data repository")
    repo_name: str = Field(default="", description="Name of the data repository")
    branch: str = Field(default="main", description="Branch holding the data file")
    json_file_path: str = Field(default="data.json", description="Path of the transaction JSON file")
    store_backend: str = Field(default="github", description="github | memory")

    # QRIS
    data_statis_qris: str = Field(default="", description="Static merchant QRIS payload")
    payment_expiry_minutes: int = Field(default=5, description="Minutes before a QRIS payment expires")

    # Telegram
    telegram_bot_token: str = Field(default="", description="Bot token for payment notifications")
    telegram_chat_id: str = Field(default="", description="Chat receiving payment notifications")

    # Bank mutation provider
    mutasi_endpoint: str = Field(default=DEFAULT_MUTASI_URL, description="Mutation history endpoint")
    mutasi_auth_username: str = Field(default="", description="Mutation API username")
    mutasi_auth_token: str = Field(default="", description="Mutation API token")

    # Application configuration file
    app_config_path: str = Field(default="data/viaQris.json", description="Branding/fee config file")

    # Runtime
    http_timeout: float = Field(default=15.0, description="Timeout for outbound HTTP calls (seconds)")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Render logs as JSON")
    allowed_origins: str = Field(default="*", description="CORS allowed origins (comma-separated)")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "github_token",
        "repo_owner",
        "repo_name",
        "branch",
        "json_file_path",
        "store_backend",
        "data_statis_qris",
        "telegram_bot_token",
        "telegram_chat_id",
        "mutasi_auth_username",
        "mutasi_auth_token",
        "app_config_path",
        mode="before",
    )
    @classmethod
    def strip_env_noise(cls, v):
        if isinstance(v, str):
            return normalize_env(v)
        return v

    @field_validator("mutasi_endpoint", mode="before")
    @classmethod
    def validate_mutasi_endpoint(cls, v):
        url = normalize_env(v) if isinstance(v, str) else ""
        if not re.match(r"^https?://.+", url):
            return DEFAULT_MUTASI_URL
        return url

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("github", "memory"):
            raise ValueError("STORE_BACKEND must be 'github' or 'memory'")
        return v

    @property
    def origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def github_configured(self) -> bool:
        return bool(self.github_token and self.repo_owner and self.repo_name
                     and self.branch and self.json_file_path)

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    @property
    def mutasi_configured(self) -> bool:
        return bool(self.mutasi_endpoint and self.mutasi_auth_username and self.mutasi_auth_token)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
