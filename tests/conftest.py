"""Pytest configuration providing shared fixtures."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable

import httpx
import pytest
import structlog

from record_pipeline import logging_conf
from record_pipeline.config import ConfigLocator, ConfigRepository, PipelineConfig

AS_OF = "08/04/2021"

HEADER = [
    "Date",
    "Name",
    "Address",
    "Address2",
    "City",
    "State",
    "Zipcode",
    "Telephone",
    "Mobile",
    "Amount",
    "Processor",
    "Memo",
]


def _row(date: str, name: str, city: str = "Warsaw", memo: str = "") -> list[str]:
    return [date, name, "Poland Street", "", city, "PL", "38002", "  ", "000-000-0000", "$90", "Stripe", memo]


class RecordingTransport(httpx.MockTransport):
    """Mock transport keeping every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []
        self._lock = Lock()

        def _record(request: httpx.Request) -> httpx.Response:
            request.read()
            with self._lock:
                self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def raw_rows() -> Callable[[], list[list[str]]]:
    """Header plus ten rows: one triplicate, three pairs, one single.

    Memo values differ between copies; duplicates only show once the memo
    column is gone.
    """

    def _builder() -> list[list[str]]:
        return [
            list(HEADER),
            _row("01/04/2016", "Jerome AMON", memo="first"),
            _row("01/04/2016", "Jerome AMON", memo="second"),
            _row("01/04/2016", "Jerome AMON"),
            _row("01/04/2017", "Jerome AMON"),
            _row("01/04/2017", "Jerome AMON", memo="again"),
            _row("01/04/2018", "Abou AMON"),
            _row("01/04/2018", "Abou AMON"),
            _row("01/04/2019", "Abou AMON", city="Krakow"),
            _row("01/04/2019", "Abou AMON", city="Krakow"),
            _row("01/04/2016", "Abou AMON"),
        ]

    return _builder


@pytest.fixture
def normalized_row() -> list[str]:
    return [
        "01/04/2016",
        "Jerome AMON",
        "Poland Street",
        "missing",
        "Warsaw",
        "PL",
        "38002",
        "missing",
        "000-000-0000",
        "$90",
        "Stripe",
        AS_OF,
    ]


@pytest.fixture
def pipeline_config() -> Callable[..., PipelineConfig]:
    def _builder(**overrides: Any) -> PipelineConfig:
        base: dict[str, Any] = {
            "source_url": "https://files.example.com/exports/data.csv",
            "api_url": "https://api.example.com/v1/paymentsrecords",
            "api_key": "complex-api-key",
            "enable_progress_bar": False,
        }
        base.update(overrides)
        return PipelineConfig(**base)

    return _builder


@pytest.fixture
def recording_transport() -> Callable[[Callable[[httpx.Request], httpx.Response]], RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[[Iterable[list[str]], str], Path]:
    def _writer(rows: Iterable[list[str]], name: str = "data.csv") -> Path:
        path = tmp_path / name
        with path.open("w", encoding="utf-8", newline="") as stream:
            csv.writer(stream).writerows(rows)
        return path

    return _writer


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("RECORD_PIPELINE_HOME", str(tmp_path))
    for variable in ("RECORD_PIPELINE_SOURCE_URL", "RECORD_PIPELINE_API_URL", "RECORD_PIPELINE_API_KEY"):
        monkeypatch.delenv(variable, raising=False)
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch: pytest.MonkeyPatch) -> Iterable[None]:
    monkeypatch.setattr(logging_conf, "_LOGGING_INITIALISED", False)
    yield
    for name in (logging_conf.APP_LOGGER, logging_conf.RECORDS_LOGGER):
        py_logger = logging.getLogger(name)
        for handler in list(py_logger.handlers):
            py_logger.removeHandler(handler)
            handler.close()
    structlog.reset_defaults()
