"""Thread-safe accumulator for parsed samples."""

from __future__ import annotations

import threading

from .base import Sample


class SampleBuffer:
    """Collects samples from the reader thread until a reporter drains them.

    :meth:`append` and :meth:`drain` share one lock, so every appended
    sample is returned by exactly one :meth:`drain` call.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._samples: list[Sample] = []

    def append(self, sample: Sample) -> None:
        with self._lock:
            self._samples.append(sample)

    def drain(self) -> list[Sample]:
        """Return everything collected so far and start a new collection."""
        with self._lock:
            drained = self._samples
            self._samples = []
        return drained

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
