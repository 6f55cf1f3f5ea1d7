"""
Batch accumulator for chunked inserts.

Records are collected until the configured chunk size is reached, then the
full batch is handed to the flush callback and replaced by a new empty list.
A flushed batch is never touched again, so a leftover can't be inserted twice.
"""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Batch = list[dict[str, Any]]


class BatchAccumulator:
    """Collects records and flushes them in fixed-size batches."""

    def __init__(self, chunk_size: int, flush: Callable[[Batch], Any]):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got: {chunk_size}")
        self.chunk_size = chunk_size
        self._flush = flush
        self._batch: Batch = []
        self.flush_count = 0
        self.record_count = 0

    def __len__(self) -> int:
        return len(self._batch)

    def add(self, record: dict[str, Any]) -> None:
        """Append a record, flushing if the batch is full. Empty records are ignored."""
        if not record:
            return

        self._batch.append(record)
        self.record_count += 1

        if len(self._batch) >= self.chunk_size:
            self._flush_current()

    def finish(self) -> None:
        """Flush whatever is left over. No-op when the batch is empty."""
        if self._batch:
            self._flush_current()

    def _flush_current(self) -> None:
        batch, self._batch = self._batch, []
        self.flush_count += 1
        logger.debug("Flushing batch %d (%d records)", self.flush_count, len(batch))
        self._flush(batch)
