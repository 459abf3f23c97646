"""Run orchestrator wiring together download, normalize, dedup and submission."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import httpx
import structlog

from .config import ConfigLocator, PipelineConfig
from .engine import (
    Downloader,
    FieldNormalizer,
    RunStatistics,
    SubmissionEngine,
    Submitter,
    UniqueRecordSet,
    remove_duplicate_records,
)
from .engine.fetcher import AS_OF_FORMAT
from .errors import TableError
from .logging_conf import attach_run_logs, detach_run_logs
from .ui import ProgressActivity, ProgressReporter


def read_table(path: Path) -> list[list[str]]:
    """Load every row of a CSV file; the first row is the header."""

    try:
        with path.open("r", encoding="utf-8-sig", newline="") as stream:
            return [row for row in csv.reader(stream)]
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise TableError(f"Failed to load records from {path}: {exc}") from exc


@dataclass(slots=True)
class RunReport:
    """Outcome of one launch."""

    run_dir: Path
    table_path: Path
    as_of: str
    stats: RunStatistics


class Orchestrator:
    """Central coordinator for one pipeline run."""

    def __init__(
        self,
        config: PipelineConfig,
        locator: ConfigLocator | None = None,
        transport: httpx.BaseTransport | None = None,
        verbose: bool = False,
    ) -> None:
        self.config = config
        self.locator = locator or ConfigLocator()
        self.transport = transport
        self.verbose = verbose
        self.logger = structlog.get_logger("record_pipeline.orchestrator")
        self.record_logger = structlog.get_logger("record_pipeline.records")

    def run(
        self,
        progress_enabled: bool | None = None,
        local_file: Path | None = None,
        as_of: str | None = None,
    ) -> RunReport:
        """Download (or take ``local_file``), process and submit the table."""

        self.config.require_submission_target()
        run_dir = self.locator.new_run_dir()
        self.logger, self.record_logger = attach_run_logs(run_dir, verbose=self.verbose)
        try:
            if local_file is not None:
                table_path = local_file
                effective_as_of = as_of or datetime.now(timezone.utc).strftime(AS_OF_FORMAT)
                self.logger.info("using_local_table", path=str(local_file), as_of=effective_as_of)
            else:
                show_activity = self.config.enable_progress_bar if progress_enabled is None else progress_enabled
                with ProgressActivity(enabled=show_activity) as activity, Downloader(
                    self.config.timeout, logger=self.logger, transport=self.transport
                ) as downloader:
                    activity.start(f"Downloading {self.config.source_url}")
                    result = downloader.download(self.config.source_url, run_dir)
                table_path = result.path
                effective_as_of = as_of or result.as_of
            stats = self.process_file(table_path, effective_as_of, progress_enabled=progress_enabled)
        except Exception:
            self.logger.exception("run_aborted", run_dir=str(run_dir))
            raise
        finally:
            detach_run_logs()
        return RunReport(run_dir=run_dir, table_path=table_path, as_of=effective_as_of, stats=stats)

    def process_file(self, path: Path, as_of: str, progress_enabled: bool | None = None) -> RunStatistics:
        self.logger.info("loading_table", path=str(path))
        rows = read_table(path)
        self.logger.info("table_loaded", rows=len(rows))
        return self.process_rows(rows, as_of, progress_enabled=progress_enabled)

    def process_rows(
        self,
        rows: list[list[str]],
        as_of: str,
        progress_enabled: bool | None = None,
    ) -> RunStatistics:
        """Normalize, deduplicate and submit ``rows`` (header first)."""

        if len(rows) <= 1:
            self.logger.warning("no_records", rows=len(rows))
            return RunStatistics()

        normalizer = FieldNormalizer(
            memo_column=self.config.memo_column,
            missing_value=self.config.missing_value,
            logger=self.logger,
        )
        normalizer.remove_memo_field(rows, as_of)
        data_rows = rows[1:]
        normalizer.replace_empty_values(data_rows)

        unique = UniqueRecordSet()
        initial = len(data_rows)
        remove_duplicate_records(data_rows, unique, logger=self.logger)
        # Keep a single copy of the data in memory during submission.
        del data_rows
        rows.clear()

        progress_flag = self.config.enable_progress_bar if progress_enabled is None else progress_enabled
        with Submitter(
            self.config.api_url,
            self.config.api_key,
            timeout=self.config.timeout,
            accepted_statuses=self.config.accepted_statuses,
            success_http_statuses=self.config.success_http_statuses,
            logger=self.logger,
            record_logger=self.record_logger,
            transport=self.transport,
        ) as submitter:
            engine = SubmissionEngine(
                submitter,
                max_workers=self.config.max_workers,
                envelope=self.config.envelope_field,
                progress=ProgressReporter(enabled=progress_flag),
                logger=self.logger,
                record_logger=self.record_logger,
            )
            stats = engine.run(unique)
        stats.initial = initial
        self.logger.info("run_summary", **stats.as_dict())
        return stats


__all__ = ["Orchestrator", "RunReport", "read_table"]
