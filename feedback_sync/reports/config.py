"""Weekly report configuration.

All settings can be overridden via ``REPORTS_*`` environment variables.
"""

from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReportConfig(BaseSettings):
    """Configuration for weekly report generation and storage."""

    model_config = SettingsConfigDict(
        env_prefix="REPORTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    storage_dir: Path = Field(
        default=Path("./data"),
        description="Root directory report documents are written under",
    )
    public_base_url: str | None = Field(
        default=None,
        description=(
            "Base URL the storage directory is served from. "
            "Reports get file:// URLs when unset."
        ),
    )
    timezone: str | None = Field(
        default=None,
        description="IANA zone used for the weekly window and day buckets (system zone if unset)",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone {v!r}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo | None:
        """Reference zone, or None for the system local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None
