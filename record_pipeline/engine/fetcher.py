"""Download of the source table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

import httpx
import structlog

from ..errors import DownloadError

AS_OF_FORMAT = "%m/%d/%Y"


def extract_filename(source_url: str) -> str:
    """Return the last path segment of ``source_url``."""

    parsed = urlparse(source_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise DownloadError(f"Not a downloadable URL: {source_url!r}")
    filename = parsed.path.rsplit("/", 1)[-1]
    if not filename:
        raise DownloadError(f"The link does not seem to point at a file: {source_url!r}")
    return filename


@dataclass(slots=True)
class DownloadResult:
    path: Path
    as_of: str
    size: int


class Downloader:
    """Stream the source table into the run directory."""

    def __init__(
        self,
        timeout: float = 15.0,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.logger = logger or structlog.get_logger("record_pipeline.fetcher")
        self._client = httpx.Client(follow_redirects=True, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Downloader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def download(self, source_url: str, destination_dir: Path, now: datetime | None = None) -> DownloadResult:
        """Save the table under ``destination_dir``.

        The as-of date is the UTC download date formatted ``MM/DD/YYYY``.
        """
        filename = extract_filename(source_url)
        destination = destination_dir / filename
        self.logger.info("download_started", url=source_url, destination=str(destination))
        size = 0
        try:
            with self._client.stream("GET", source_url) as response:
                response.raise_for_status()
                with destination.open("wb") as stream:
                    for chunk in response.iter_bytes():
                        stream.write(chunk)
                        size += len(chunk)
        except httpx.HTTPError as exc:
            self.logger.error("download_failed", url=source_url, error=str(exc))
            raise DownloadError(f"Failed to download {source_url}: {exc}") from exc
        except OSError as exc:
            self.logger.error("download_save_failed", destination=str(destination), error=str(exc))
            raise DownloadError(f"Failed to save {destination}: {exc}") from exc

        moment = now or datetime.now(timezone.utc)
        as_of = moment.astimezone(timezone.utc).strftime(AS_OF_FORMAT)
        self.logger.info("download_completed", destination=str(destination), bytes=size, as_of=as_of)
        return DownloadResult(path=destination, as_of=as_of, size=size)


__all__ = ["AS_OF_FORMAT", "DownloadResult", "Downloader", "extract_filename"]
