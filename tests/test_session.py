from __future__ import annotations

import logging
import threading
from typing import List

import pytest

from app.schemas import LivePreview, MeasurementRecord
from datastore.history import HistoryStore
from models.records import Sample
from services.analyzer import TremorAnalyzer
from services.session import (
    TOO_SHORT_INTERPRETATION,
    SessionController,
    evaluate_session,
)


class FakeClock:
    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now


class RecordingDisplay:
    def __init__(self) -> None:
        self.previews: List[LivePreview] = []
        self.results: List[MeasurementRecord] = []
        self.finished = threading.Event()

    def show_live(self, preview: LivePreview) -> None:
        self.previews.append(preview)

    def show_result(self, record: MeasurementRecord) -> None:
        self.results.append(record)
        self.finished.set()


class FakeWakeLock:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.events: List[str] = []

    def acquire(self) -> None:
        self.events.append("acquire")
        if self.fail:
            raise RuntimeError("screen lock denied")

    def release(self) -> None:
        self.events.append("release")


class FakeSource:
    def __init__(self) -> None:
        self.handlers: list = []

    def subscribe(self, handler) -> None:
        self.handlers.append(handler)

    def unsubscribe(self, handler) -> None:
        self.handlers.remove(handler)

    def emit(self, sample: Sample) -> None:
        for handler in list(self.handlers):
            handler(sample)


class CountingAnalyzer(TremorAnalyzer):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    def analyze(self, samples):
        self.calls += 1
        return super().analyze(samples)


def _controller(**overrides) -> SessionController:
    options = dict(
        analyzer=TremorAnalyzer(),
        history=HistoryStore(),
        duration_ms=60_000,
        clock=FakeClock(),
        session_id="session-1",
    )
    options.update(overrides)
    return SessionController(**options)


def test_completed_session_records_metrics(sine_samples) -> None:
    display = RecordingDisplay()
    history = HistoryStore()
    controller = _controller(history=history, display=display)

    controller.start()
    for sample in sine_samples(300):
        controller.add_sample(sample)
    record = controller.stop()

    assert record is not None
    assert record.error is False
    assert record.sample_count == 300
    assert record.severity_level is not None and record.severity_level >= 8.6
    assert record.interpretation == "Significant tremor"
    assert history.scan() == [record]
    assert display.results == [record]
    assert controller.is_running is False


def test_short_session_is_recorded_as_error_without_analysis(sine_samples) -> None:
    analyzer = CountingAnalyzer()
    history = HistoryStore()
    controller = _controller(analyzer=analyzer, history=history, live_min_samples=1_000)

    controller.start()
    for sample in sine_samples(80):
        controller.add_sample(sample)
    record = controller.stop()

    assert analyzer.calls == 0
    assert record is not None
    assert record.error is True
    assert record.interpretation == TOO_SHORT_INTERPRETATION
    assert record.severity_level is None
    assert record.dominant_frequency is None
    assert history.scan() == [record]


def test_exactly_threshold_samples_is_too_short(still_samples) -> None:
    record = evaluate_session(
        still_samples(100), analyzer=TremorAnalyzer(), min_session_samples=100, timestamp_ms=1
    )
    assert record.error is True

    record = evaluate_session(
        still_samples(101), analyzer=TremorAnalyzer(), min_session_samples=100, timestamp_ms=1
    )
    assert record.error is False
    assert record.interpretation == "Minimal or absent tremor"


def test_live_preview_every_fifth_sample_after_minimum(sine_samples) -> None:
    clock = FakeClock()
    display = RecordingDisplay()
    controller = _controller(display=display, clock=clock, duration_ms=10_000)

    controller.start()
    clock.now += 2_500
    previews = [controller.add_sample(sample) for sample in sine_samples(25)]

    assert [p is not None for p in previews].count(True) == 2
    assert [p.sample_count for p in display.previews] == [20, 25]
    assert display.previews[-1].progress_percent == pytest.approx(25.0)
    assert controller.last_preview == display.previews[-1]
    controller.stop()


def test_live_preview_uses_trailing_window(sine_samples, still_samples) -> None:
    analyzer = CountingAnalyzer()
    controller = _controller(analyzer=analyzer, live_window=100)
    seen: List[int] = []
    original = analyzer.analyze

    def spy(samples):
        seen.append(len(samples))
        return original(samples)

    analyzer.analyze = spy  # type: ignore[method-assign]

    controller.start()
    for sample in still_samples(200):
        controller.add_sample(sample)

    assert max(seen) == 100
    assert controller.last_preview is not None
    assert controller.last_preview.sample_count == 200
    controller.stop()


def test_samples_after_stop_are_ignored(still_samples) -> None:
    controller = _controller()
    controller.start()
    controller.add_sample(still_samples(1)[0])
    controller.stop()

    assert controller.add_sample(still_samples(1)[0]) is None
    assert len(controller.buffer) == 1


def test_stop_twice_returns_same_record() -> None:
    history = HistoryStore()
    controller = _controller(history=history)
    controller.start()

    first = controller.stop()
    second = controller.stop()

    assert first is second
    assert len(history.scan()) == 1


def test_start_clears_previous_series(still_samples) -> None:
    controller = _controller()
    controller.start()
    for sample in still_samples(10):
        controller.add_sample(sample)
    controller.stop()

    controller.start()
    assert len(controller.buffer) == 0
    assert controller.last_record is None
    controller.stop()


def test_wake_lock_wraps_sampling_lifecycle() -> None:
    lock = FakeWakeLock()
    controller = _controller(wake_lock=lock)

    controller.start()
    assert lock.events == ["acquire"]
    controller.stop()
    assert lock.events == ["acquire", "release"]


def test_wake_lock_failure_does_not_block_session(caplog) -> None:
    lock = FakeWakeLock(fail=True)
    controller = _controller(wake_lock=lock)

    with caplog.at_level(logging.WARNING):
        controller.start()

    assert controller.is_running is True
    assert any("Wake lock unavailable" in r.getMessage() for r in caplog.records)
    controller.stop()


def test_motion_source_subscription_follows_session(sine_samples) -> None:
    source = FakeSource()
    controller = _controller(source=source)

    controller.start()
    assert len(source.handlers) == 1
    for sample in sine_samples(150):
        source.emit(sample)
    record = controller.stop()

    assert source.handlers == []
    assert record is not None and record.sample_count == 150


def test_timeout_stops_session_and_records_result() -> None:
    display = RecordingDisplay()
    history = HistoryStore()
    controller = _controller(
        display=display, history=history, duration_ms=50, live_min_samples=1_000
    )

    controller.start()

    assert display.finished.wait(timeout=5.0)
    assert controller.is_running is False
    assert controller.last_record is not None
    assert controller.last_record.error is True
    assert len(history.scan()) == 1


class FailingHistory(HistoryStore):
    def append(self, record: MeasurementRecord) -> None:
        raise OSError("disk full")


def test_record_survives_history_write_failure(still_samples) -> None:
    finished: List[SessionController] = []
    controller = _controller(history=FailingHistory(), on_finish=finished.append)
    controller.start()
    for sample in still_samples(150):
        controller.add_sample(sample)

    with pytest.raises(OSError):
        controller.stop()

    record = controller.stop()
    assert record is not None
    assert record.sample_count == 150
    assert finished == [controller]


def test_finish_hook_runs_on_timeout() -> None:
    finished = threading.Event()
    controller = _controller(duration_ms=50, on_finish=lambda _: finished.set())

    controller.start()

    assert finished.wait(timeout=5.0)
    assert controller.is_running is False
