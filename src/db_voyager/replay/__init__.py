"""SQL batch splitting and replay.

Usage:
    from db_voyager.replay import SqlBatchExecutor, split_batches
"""

from db_voyager.replay.executor import (
    BatchReport,
    SqlBatchExecutor,
    iter_batches,
    split_batches,
)

__all__ = ["BatchReport", "SqlBatchExecutor", "iter_batches", "split_batches"]
