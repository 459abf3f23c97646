"""Pydantic models describing a pipeline run."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..errors import ConfigError

DEFAULT_SOURCE_URL = "https://s3.amazonaws.com/ecompany/data.csv"


class PipelineConfig(BaseModel):
    """Settings shared by the download, normalize and submission stages."""

    source_url: str = DEFAULT_SOURCE_URL
    api_url: str = ""
    api_key: str = Field(default="", repr=False)
    max_workers: int = Field(default=10, ge=1)
    timeout: float = Field(default=15.0, gt=0)
    accepted_statuses: list[int] = Field(default_factory=lambda: [200, 202])
    success_http_statuses: list[int] = Field(default_factory=lambda: [200, 201])
    memo_column: str = "Memo"
    missing_value: str = "missing"
    envelope_field: str = "PaymentRecord"
    enable_progress_bar: bool = True

    @field_validator("source_url", "api_url", "api_key", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("accepted_statuses", "success_http_statuses")
    @classmethod
    def _check_statuses(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("Status list cannot be empty")
        for status in value:
            if not 100 <= status <= 599:
                raise ValueError(f"Not an HTTP status code: {status}")
        return value

    @field_validator("memo_column", "envelope_field")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Value cannot be empty")
        return value

    def require_submission_target(self) -> None:
        missing = [name for name in ("api_url", "api_key") if not getattr(self, name)]
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")

    def masked(self) -> dict[str, Any]:
        """Dump for display, without leaking the API key."""
        payload = self.model_dump(mode="json")
        key = payload.get("api_key") or ""
        payload["api_key"] = (key[:2] + "*" * (len(key) - 2)) if len(key) > 2 else "*" * len(key)
        return payload


__all__ = ["DEFAULT_SOURCE_URL", "PipelineConfig"]
