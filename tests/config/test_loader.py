from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
import yaml

from record_pipeline.config import ConfigLocator, ConfigRepository, PipelineConfig


def test_config_locator_uses_env_and_creates_directories(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECORD_PIPELINE_HOME", str(tmp_path))
    locator = ConfigLocator()
    assert locator.project_root == tmp_path.resolve()
    assert locator.data_dir.exists()
    assert locator.logs_dir.exists()
    assert locator.config_path() == tmp_path.resolve() / "data" / "config.yaml"


def test_new_run_dir_is_unique(temp_config_repository: ConfigRepository) -> None:
    locator = temp_config_repository.locator
    moment = datetime(2021, 8, 4, 9, 5, 7)
    first = locator.new_run_dir(moment)
    second = locator.new_run_dir(moment)
    assert first.name == "run@20210804.090507"
    assert second.name == "run@20210804.090507-1"
    assert locator.run_dirs() == [first, second]


def test_repository_roundtrip(temp_config_repository: ConfigRepository) -> None:
    config = PipelineConfig(api_url="https://api.example.com", api_key="key", max_workers=4)
    path = temp_config_repository.save_config(config)
    payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert payload["max_workers"] == 4
    assert temp_config_repository.load_config() == config


def test_environment_overrides_file(temp_config_repository: ConfigRepository) -> None:
    temp_config_repository.save_config(PipelineConfig(api_url="https://file.example.com", api_key="file-key"))
    config = temp_config_repository.load_config(
        environ={"RECORD_PIPELINE_API_URL": "https://env.example.com", "RECORD_PIPELINE_API_KEY": ""}
    )
    assert config.api_url == "https://env.example.com"
    assert config.api_key == "file-key"


def test_explicit_overrides_win(temp_config_repository: ConfigRepository) -> None:
    config = temp_config_repository.load_config(
        overrides={"api_url": "https://cli.example.com", "api_key": None},
        environ={"RECORD_PIPELINE_API_URL": "https://env.example.com", "RECORD_PIPELINE_API_KEY": "env-key"},
    )
    assert config.api_url == "https://cli.example.com"
    assert config.api_key == "env-key"


def test_invalid_file_rejected(temp_config_repository: ConfigRepository) -> None:
    temp_config_repository.locator.config_path().write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        temp_config_repository.load_config()
