"""Configuration loading helpers for Record Pipeline."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import PipelineConfig

CONFIG_FILENAME = "config.yaml"
HOME_ENV = "RECORD_PIPELINE_HOME"
RUN_DIR_PREFIX = "run@"

# Environment variable -> config field.
ENV_OVERRIDES = {
    "RECORD_PIPELINE_SOURCE_URL": "source_url",
    "RECORD_PIPELINE_API_URL": "api_url",
    "RECORD_PIPELINE_API_KEY": "api_key",
}


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME

    def new_run_dir(self, now: datetime | None = None) -> Path:
        """Create the per-launch directory, ``logs/run@YYYYMMDD.HHMMSS``."""
        stamp = (now or datetime.now()).strftime("%Y%m%d.%H%M%S")
        base = self.logs_dir / f"{RUN_DIR_PREFIX}{stamp}"
        candidate = base
        suffix = 1
        while candidate.exists():
            candidate = base.with_name(f"{base.name}-{suffix}")
            suffix += 1
        candidate.mkdir(parents=True)
        return candidate

    def run_dirs(self) -> list[Path]:
        return sorted(p for p in self.logs_dir.glob(f"{RUN_DIR_PREFIX}*") if p.is_dir())


class ConfigRepository:
    """Repository encapsulating config IO, env overrides and validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()

    def load_config(
        self,
        overrides: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> PipelineConfig:
        """Merge file settings, then environment, then explicit ``overrides``."""
        path = self.locator.config_path()
        payload: dict[str, Any] = _read_file(path) if path.exists() else {}
        env = os.environ if environ is None else environ
        for variable, field in ENV_OVERRIDES.items():
            value = env.get(variable)
            if value:
                payload[field] = value
        for field, value in (overrides or {}).items():
            if value is not None:
                payload[field] = value
        return PipelineConfig.model_validate(payload)

    def save_config(self, config: PipelineConfig) -> Path:
        path = self.locator.config_path()
        _write_file(path, config.model_dump(mode="json"))
        return path


__all__ = ["CONFIG_FILENAME", "ConfigLocator", "ConfigRepository", "ENV_OVERRIDES", "HOME_ENV"]
