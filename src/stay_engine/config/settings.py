"""Runtime configuration for the availability engine.

Relies on pydantic-settings so that environment variables (prefixed with
``STAY_ENGINE_``) can override defaults.
"""
from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROPERTY_PARAMS = ("hotelNo", "hotelId")


class Settings(BaseSettings):
    """Captures runtime configuration for the engine and its HTTP surface."""

    upstream_base_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the upstream property-management system",
    )
    availability_path: str = Field(
        default="/api/calabogie/availability",
        description="Path of the upstream availability endpoint",
    )
    room_types_path: str = Field(
        default="/api/calabogie/view-all-rooms",
        description="Path of the upstream room-type listing endpoint",
    )
    property_param: str = Field(
        default="hotelNo",
        description="Query parameter carrying the property id ('hotelNo' or 'hotelId')",
    )
    default_property_id: str = Field(default="CBE")
    default_currency: str = Field(default="CAD", description="ISO 4217 code used when a query names none")
    request_timeout_s: float = Field(default=10.0, description="Per-request upstream timeout in seconds")
    calendar_window_months: int = Field(
        default=6, description="Months of availability loaded for the booking calendar"
    )
    debounce_ms: int = Field(default=250, description="Debounce applied to availability reloads")
    property_timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone used for 'today'; the host clock is used when unset",
    )
    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("data/logs"))

    model_config = SettingsConfigDict(
        env_prefix="STAY_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("upstream_base_url")
    def _strip_base_url(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("default_currency")
    def _normalize_currency(cls, value: str) -> str:
        code = value.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("default_currency must be a three-letter ISO 4217 code")
        return code

    @field_validator("property_param")
    def _validate_property_param(cls, value: str) -> str:
        if value not in PROPERTY_PARAMS:
            raise ValueError(f"property_param must be one of {', '.join(PROPERTY_PARAMS)}")
        return value

    @field_validator("request_timeout_s")
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout_s must be positive")
        return value

    @field_validator("calendar_window_months")
    def _validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("calendar_window_months must be positive")
        return value

    @field_validator("debounce_ms")
    def _validate_debounce(cls, value: int) -> int:
        if value < 0:
            raise ValueError("debounce_ms cannot be negative")
        return value

    @field_validator("property_timezone", mode="before")
    def _validate_timezone(cls, value: str | None) -> Optional[str]:
        if value in (None, ""):
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone {value!r}") from exc
        return value

    @field_validator("log_dir", mode="before")
    def _expand_log_dir(cls, value: str | Path) -> Path:
        if isinstance(value, Path):
            return value
        return Path(value).expanduser()

    @property
    def debounce_s(self) -> float:
        return self.debounce_ms / 1000.0

    def today(self) -> date:
        """Return the calendar date the booking window starts from."""
        if self.property_timezone:
            return datetime.now(ZoneInfo(self.property_timezone)).date()
        return date.today()
