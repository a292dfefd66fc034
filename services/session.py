"""Sampling lifecycle for a single measurement session."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Protocol, Sequence

from app.schemas import LivePreview, MeasurementRecord, MetricsPayload
from datastore.history import HistoryStore
from models.records import Sample
from services.analyzer import TremorAnalyzer
from services.severity import interpret
from storage.sample_buffer import SampleBuffer

logger = logging.getLogger(__name__)

TOO_SHORT_INTERPRETATION = "Error: measurement too short"

SampleHandler = Callable[[Sample], None]


class MotionSource(Protocol):
    def subscribe(self, handler: SampleHandler) -> None: ...

    def unsubscribe(self, handler: SampleHandler) -> None: ...


class DisplaySink(Protocol):
    def show_live(self, preview: LivePreview) -> None: ...

    def show_result(self, record: MeasurementRecord) -> None: ...


class WakeLock(Protocol):
    def acquire(self) -> None: ...

    def release(self) -> None: ...


def now_ms() -> int:
    return int(time.time() * 1000)


def evaluate_session(
    samples: Sequence[Sample],
    analyzer: TremorAnalyzer,
    min_session_samples: int,
    timestamp_ms: int,
) -> MeasurementRecord:
    """Turn a frozen session series into its history record.

    Series with ``min_session_samples`` samples or fewer are too short to
    score and become error records without being analysed.
    """
    sample_count = len(samples)
    if sample_count <= min_session_samples:
        return MeasurementRecord.failed(
            timestamp_ms=timestamp_ms,
            interpretation=TOO_SHORT_INTERPRETATION,
            sample_count=sample_count,
        )

    metrics = analyzer.analyze(samples)
    return MeasurementRecord.from_metrics(
        metrics,
        timestamp_ms=timestamp_ms,
        interpretation=interpret(metrics.severity_level),
        sample_count=sample_count,
    )


class SessionController:
    """Owns start, stop and timeout for one observation window.

    Samples arrive through :meth:`add_sample`, either pushed directly or
    delivered by a subscribed motion source. While running, a live preview
    is computed on the trailing window every ``live_update_every`` samples.
    Stopping (explicitly or by timeout) freezes the series before the final
    evaluation, which is appended to the history store.
    """

    def __init__(
        self,
        analyzer: TremorAnalyzer,
        history: HistoryStore,
        duration_ms: int = 10_000,
        min_session_samples: int = 100,
        live_window: int = 100,
        live_min_samples: int = 20,
        live_update_every: int = 5,
        source: Optional[MotionSource] = None,
        display: Optional[DisplaySink] = None,
        wake_lock: Optional[WakeLock] = None,
        clock: Callable[[], int] = now_ms,
        session_id: Optional[str] = None,
        on_finish: Optional[Callable[[SessionController], None]] = None,
    ) -> None:
        self.analyzer = analyzer
        self.history = history
        self.duration_ms = duration_ms
        self.min_session_samples = min_session_samples
        self.live_window = live_window
        self.live_min_samples = live_min_samples
        self.live_update_every = live_update_every
        self.source = source
        self.display = display
        self.wake_lock = wake_lock
        self.clock = clock
        self.session_id = session_id
        self.on_finish = on_finish

        self.buffer = SampleBuffer()
        self.started_at_ms: Optional[int] = None
        self.last_preview: Optional[LivePreview] = None
        self.last_record: Optional[MeasurementRecord] = None

        self._running = False
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                logger.warning("Session already running", extra={"session_id": self.session_id})
                return
            self.buffer.clear()
            self.last_preview = None
            self.last_record = None
            self.started_at_ms = self.clock()
            self._running = True

        self._acquire_wake_lock()
        if self.source is not None:
            self.source.subscribe(self.add_sample)

        timer = threading.Timer(self.duration_ms / 1000, self._on_timeout)
        timer.daemon = True
        with self._lock:
            self._timer = timer
        timer.start()

        logger.info("Session started", extra={"session_id": self.session_id})

    def add_sample(self, sample: Sample) -> Optional[LivePreview]:
        """Record a sample; returns a fresh live preview when one was computed."""
        with self._lock:
            if not self._running:
                return None
            count = self.buffer.append(sample)

        if count % self.live_update_every != 0 or count < self.live_min_samples:
            return None
        return self._publish_preview(count)

    def stop(self) -> Optional[MeasurementRecord]:
        """Stop sampling and return the session's record.

        A session that already stopped returns its existing record, even
        when persisting it failed the first time.
        """
        with self._lock:
            if not self._running:
                return self.last_record
            self._running = False
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        if self.source is not None:
            self.source.unsubscribe(self.add_sample)
        self._release_wake_lock()

        samples = self.buffer.snapshot()
        try:
            record = evaluate_session(
                samples,
                analyzer=self.analyzer,
                min_session_samples=self.min_session_samples,
                timestamp_ms=self.clock(),
            )
            with self._lock:
                self.last_record = record
            self.history.append(record)
        finally:
            if self.on_finish is not None:
                self.on_finish(self)

        if record.error:
            logger.warning(
                "Session too short to score",
                extra={"session_id": self.session_id, "sample_count": len(samples)},
            )
        else:
            logger.info(
                "Session completed",
                extra={
                    "session_id": self.session_id,
                    "sample_count": len(samples),
                    "severity_level": record.severity_level,
                    "dominant_frequency": record.dominant_frequency,
                },
            )

        if self.display is not None:
            self.display.show_result(record)
        return record

    def progress_percent(self) -> float:
        if self.started_at_ms is None or self.duration_ms <= 0:
            return 0.0
        elapsed = self.clock() - self.started_at_ms
        return max(0.0, min(100.0, elapsed / self.duration_ms * 100))

    def _publish_preview(self, count: int) -> LivePreview:
        window = self.buffer.tail(self.live_window)
        metrics = self.analyzer.analyze(window)
        preview = LivePreview(
            metrics=MetricsPayload.from_metrics(metrics),
            interpretation=interpret(metrics.severity_level),
            sample_count=count,
            progress_percent=self.progress_percent(),
        )
        self.last_preview = preview
        if self.display is not None:
            self.display.show_live(preview)
        return preview

    def _on_timeout(self) -> None:
        logger.info("Session duration elapsed", extra={"session_id": self.session_id})
        self.stop()

    def _acquire_wake_lock(self) -> None:
        if self.wake_lock is None:
            return
        try:
            self.wake_lock.acquire()
        except Exception as exc:  # noqa: BLE001 - sampling proceeds without it
            logger.warning(
                "Wake lock unavailable",
                extra={"session_id": self.session_id, "reason": str(exc)},
            )

    def _release_wake_lock(self) -> None:
        if self.wake_lock is None:
            return
        try:
            self.wake_lock.release()
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Wake lock release failed",
                extra={"session_id": self.session_id, "reason": str(exc)},
            )
