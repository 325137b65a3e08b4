"""Pydantic models for config validation.

Opt-in schema validation for ``Config.config_data``.  Call
``Config.validated()`` to obtain a typed, validated ``LotbookConfig``
instance.  Dict-based access through ``Config.get`` keeps working.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LedgerConfig(BaseModel):
    """Lot ledger settings."""

    money_places: int = Field(default=2, ge=0, le=8)
    default_currency: str = "USD"

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("default_currency cannot be empty")
        return v


class ScheduleConfig(BaseModel):
    """Amortization schedule validation knobs."""

    tolerance: float = Field(default=1e-6, gt=0, lt=0.01)


class ProjectionConfig(BaseModel):
    """Cashflow projection / recomputation settings."""

    max_workers: int = Field(default=4, ge=1, le=64)


class LoggingConfig(BaseModel):
    """Loguru sink settings."""

    level: str = "WARNING"
    file: str | None = None

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return v


class LotbookConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so consumers can bolt on custom sections
    without touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    ledger: LedgerConfig = LedgerConfig()
    schedule: ScheduleConfig = ScheduleConfig()
    projection: ProjectionConfig = ProjectionConfig()
    logging: LoggingConfig = LoggingConfig()
