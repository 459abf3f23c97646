"""Terminal rendering helpers."""

from .progress import ProgressActivity, ProgressReporter, SubmissionTally

__all__ = ["ProgressActivity", "ProgressReporter", "SubmissionTally"]
