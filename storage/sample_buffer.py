from __future__ import annotations

from threading import Lock
from typing import List

from models.records import Sample


class SampleBuffer:
    """Append-only sample series owned by a single session.

    Readers always receive tuple snapshots, so analysis never observes a
    series that is being appended to.
    """

    def __init__(self) -> None:
        self._samples: List[Sample] = []
        self._lock = Lock()

    def append(self, sample: Sample) -> int:
        """Add a sample and return the new series length."""
        with self._lock:
            self._samples.append(sample)
            return len(self._samples)

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def snapshot(self) -> tuple[Sample, ...]:
        with self._lock:
            return tuple(self._samples)

    def tail(self, count: int) -> tuple[Sample, ...]:
        """Return up to the last ``count`` samples."""
        if count <= 0:
            return ()
        with self._lock:
            return tuple(self._samples[-count:])

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
