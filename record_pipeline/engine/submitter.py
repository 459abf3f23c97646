"""HTTP submission of encoded records with outcome classification."""

from __future__ import annotations

import secrets
import time
from typing import Any, Iterable

import httpx
import structlog

API_KEY_HEADER = "X-API-KEY"


def generate_id() -> str:
    """Return an opaque correlation id for log reconciliation."""

    try:
        return secrets.token_hex(8)
    except (NotImplementedError, OSError):
        # No entropy source available.
        return format(time.time_ns(), "x")


class Submitter:
    """Post jobs to the records API and report whether each was accepted."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 15.0,
        accepted_statuses: Iterable[int] = (200, 202),
        success_http_statuses: Iterable[int] = (200, 201),
        logger: structlog.BoundLogger | None = None,
        record_logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.accepted_statuses = frozenset(accepted_statuses)
        self.success_http_statuses = frozenset(success_http_statuses)
        self.logger = logger or structlog.get_logger("record_pipeline.submitter")
        self.record_logger = record_logger or structlog.get_logger("record_pipeline.records")
        # httpx.Client is thread-safe; workers share its connection pool.
        self._client = httpx.Client(
            timeout=timeout,
            headers={API_KEY_HEADER: api_key, "Content-Type": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Submitter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def submit(self, job: bytes) -> bool:
        """POST one job; True iff the API acknowledged it."""

        cid = generate_id()
        try:
            response = self._client.post(self.api_url, content=job)
        except httpx.HTTPError as exc:
            self.logger.error("submission_failed", cid=cid, error=str(exc))
            self._log_disposition(False, cid, job)
            return False

        if response.status_code in self.success_http_statuses:
            self.logger.info("submission_succeeded", cid=cid, status=response.status_code)
            self._log_disposition(True, cid, job)
            return True

        body = self._decode_body(response)
        if body is None:
            self.logger.error(
                "submission_rejected", cid=cid, status=response.status_code, error="undecodable response body"
            )
            self._log_disposition(False, cid, job)
            return False

        status = body.get("status")
        if isinstance(status, (int, float)) and not isinstance(status, bool) and status in self.accepted_statuses:
            self.logger.info("submission_succeeded", cid=cid, status=response.status_code, body_status=status)
            self._log_disposition(True, cid, job)
            return True

        self.logger.error(
            "submission_rejected",
            cid=cid,
            status=response.status_code,
            body_status=status,
            error=body.get("error"),
        )
        self._log_disposition(False, cid, job)
        return False

    @staticmethod
    def _decode_body(response: httpx.Response) -> dict[str, Any] | None:
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    def _log_disposition(self, accepted: bool, cid: str, job: bytes) -> None:
        self.record_logger.info(
            "record_disposition",
            disposition="success" if accepted else "failure",
            cid=cid,
            payload=job.decode("utf-8", errors="replace"),
        )


__all__ = ["API_KEY_HEADER", "Submitter", "generate_id"]
