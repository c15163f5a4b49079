# fava_bridge/config.py
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

# Fava reports a failed query without a message in some versions
GENERIC_ERROR = "Something went wrong"

# Visiting this page makes Fava recompute its reports before a query
REFRESH_PATH = "/income_statement/"


class Settings(BaseSettings):
    """Upstream location plus a few transport/logging knobs, read from env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    url: str = Field(..., description="Base URL of the upstream Fava instance")
    ledger_currency: str = Field(default="CNY", description="Unit stripped from journal amounts")
    request_timeout: float = Field(default=30.0, gt=0)
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=80, ge=1, le=65535)

    @field_validator("url")
    @classmethod
    def _strip_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("url must not be empty")
        return v


def load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"url not set: {e}") from e
