"""Engine components: normalize → dedup → dispatch → aggregate."""

from .aggregator import ResultAggregator, RunStatistics
from .dedup import UniqueRecordSet, remove_duplicate_records
from .dispatch import EngineState, SubmissionEngine
from .fetcher import Downloader, DownloadResult, extract_filename
from .normalizer import FieldNormalizer
from .record import Record, decode_record, encode_record
from .submitter import Submitter, generate_id
from .thread_pool import WorkerPool, compute_worker_count

__all__ = [
    "Downloader",
    "DownloadResult",
    "EngineState",
    "FieldNormalizer",
    "Record",
    "ResultAggregator",
    "RunStatistics",
    "SubmissionEngine",
    "Submitter",
    "UniqueRecordSet",
    "WorkerPool",
    "compute_worker_count",
    "decode_record",
    "encode_record",
    "extract_filename",
    "generate_id",
    "remove_duplicate_records",
]
