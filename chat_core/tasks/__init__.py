"""Batch-level utilities (configuration, parallel runner)."""

from .batch_runner import BatchOutcome, run_batch
from .config import BatchConfig

__all__ = ["BatchConfig", "BatchOutcome", "run_batch"]
