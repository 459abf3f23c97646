"""Concurrent submission of unique records.

One producer thread encodes records into jobs, a pool of workers posts them,
and a single aggregator thread tallies the outcomes::

    producer --jobs--> workers (W) --outcomes--> aggregator

The job queue holds at most ``W`` entries so a slow pool throttles the
producer. Once every worker has returned the outcome stream is closed, and
the final counts are read only after the aggregator signalled that it has
drained it.
"""

from __future__ import annotations

import json
import queue
from enum import Enum
from threading import Thread
from typing import Callable

import structlog

from .aggregator import CLOSED, ProgressSink, ResultAggregator, RunStatistics
from .dedup import UniqueRecordSet
from .record import DEFAULT_ENVELOPE, Record, encode_record
from .submitter import Submitter, generate_id
from .thread_pool import MAX_WORKERS, WorkerPool, compute_worker_count

Encoder = Callable[[Record, str], bytes]


class EngineState(str, Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    DRAINING = "draining"
    DONE = "done"


class SubmissionEngine:
    """Fan unique records out to a bounded worker pool and collect outcomes."""

    def __init__(
        self,
        submitter: Submitter,
        max_workers: int = MAX_WORKERS,
        envelope: str = DEFAULT_ENVELOPE,
        encoder: Encoder = encode_record,
        progress: ProgressSink | None = None,
        logger: structlog.BoundLogger | None = None,
        record_logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.submitter = submitter
        self.max_workers = max_workers
        self.envelope = envelope
        self.encoder = encoder
        self.progress = progress
        self.logger = logger or structlog.get_logger("record_pipeline.engine")
        self.record_logger = record_logger or structlog.get_logger("record_pipeline.records")
        self.state = EngineState.IDLE
        self.workers = 0
        self.skipped = 0

    def run(self, unique: UniqueRecordSet) -> RunStatistics:
        if self.state is not EngineState.IDLE:
            raise RuntimeError("SubmissionEngine.run may only be called once")
        expected = len(unique)
        self.workers = compute_worker_count(expected, self.max_workers)
        jobs: "queue.Queue[object]" = queue.Queue(maxsize=self.workers)
        outcomes: "queue.Queue[object]" = queue.Queue()
        aggregator = ResultAggregator(expected, progress=self.progress, logger=self.logger)

        self.state = EngineState.DISPATCHING
        self.logger.info("submission_started", records=expected, workers=self.workers)
        aggregator_thread = Thread(
            target=aggregator.consume, args=(outcomes,), name="aggregator", daemon=True
        )
        aggregator_thread.start()
        producer = Thread(
            target=self._produce, args=(unique, jobs), name="producer", daemon=True
        )
        producer.start()

        pool = WorkerPool(self.workers)
        try:
            pool.start(self._work, jobs, outcomes)
            pool.join()
        finally:
            pool.shutdown()
            self._release_producer(producer, jobs)
            self.state = EngineState.DRAINING
            outcomes.put(CLOSED)
            aggregator.wait()
            aggregator_thread.join()
        if aggregator.error is not None:
            self.logger.error("aggregation_failed", consumed=aggregator.consumed, error=str(aggregator.error))
            raise aggregator.error
        self.state = EngineState.DONE

        stats = RunStatistics(
            unique=expected,
            success=aggregator.success,
            failure=aggregator.failure,
            skipped=self.skipped,
        )
        self.logger.info("submission_completed", **stats.as_dict())
        return stats

    def _produce(self, unique: UniqueRecordSet, jobs: "queue.Queue[object]") -> None:
        try:
            for record in unique:
                try:
                    job = self.encoder(record, self.envelope)
                except (TypeError, ValueError) as exc:
                    self._record_encoding_failure(record, exc)
                    continue
                jobs.put(job)
        finally:
            for _ in range(self.workers):
                jobs.put(CLOSED)

    @staticmethod
    def _release_producer(producer: Thread, jobs: "queue.Queue[object]") -> None:
        # Workers that stopped early leave the producer blocked on a full queue.
        while producer.is_alive():
            try:
                jobs.get(timeout=0.05)
            except queue.Empty:
                pass
        producer.join()

    def _record_encoding_failure(self, record: Record, exc: Exception) -> None:
        # Skipped records are counted apart from submission failures; progress
        # will not reach 100% for this run.
        self.skipped += 1
        sid = generate_id()
        self.logger.error("job_allocation_failed", sid=sid, error=str(exc))
        try:
            body = json.dumps(record.to_payload(), ensure_ascii=False)
        except (TypeError, ValueError):
            body = record.to_json()
        self.record_logger.info(
            "record_disposition",
            disposition="failure",
            sid=sid,
            payload=f'{{"{self.envelope}":{body}}}',
        )

    def _work(self, jobs: "queue.Queue[object]", outcomes: "queue.Queue[object]") -> None:
        while True:
            job = jobs.get()
            if job is CLOSED:
                return
            outcomes.put(self.submitter.submit(job))  # type: ignore[arg-type]


__all__ = ["EngineState", "SubmissionEngine"]
