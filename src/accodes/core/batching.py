"""Bounded, ordered buffer of page annotations awaiting a storage flush."""

from typing import List, Optional

from .errors import ConfigError
from .models import PageAnnotation

DEFAULT_BATCH_SIZE = 10


class BatchAccumulator:
    """
    Buffer annotations in arrival order until `batch_size` is reached.

    The buffer is owned by a single pipeline driver. It is cleared explicitly
    after the loader committed its contents, so a failed flush leaves the
    pages in place for the error report. `batch_size=None` never reports full;
    everything is drained by the final flush.
    """

    def __init__(self, batch_size: Optional[int] = DEFAULT_BATCH_SIZE):
        if batch_size is not None and batch_size < 1:
            raise ConfigError(f"batch_size must be a positive integer, got {batch_size}")
        self.batch_size = batch_size
        self._buffer: List[PageAnnotation] = []

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def is_full(self) -> bool:
        return self.batch_size is not None and len(self._buffer) >= self.batch_size

    @property
    def is_empty(self) -> bool:
        return not self._buffer

    def add(self, annotation: PageAnnotation) -> bool:
        """Append one annotation; returns True when the batch is ready to flush."""
        if self.is_full:
            raise OverflowError("batch is full; flush it before adding more pages")
        self._buffer.append(annotation)
        return self.is_full

    def pending(self) -> List[PageAnnotation]:
        """Snapshot of the buffered annotations, oldest first."""
        return list(self._buffer)

    def page_numbers(self) -> List[int]:
        return [annotation.page_number for annotation in self._buffer]

    def clear(self) -> None:
        self._buffer.clear()
