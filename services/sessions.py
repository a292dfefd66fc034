"""Registry of measurement sessions driven over HTTP."""

from __future__ import annotations

import logging
from collections import OrderedDict
from functools import lru_cache
from threading import Lock
from typing import Dict, Iterable, Optional, Sequence
from uuid import uuid4

from app.schemas import LivePreview, MeasurementRecord, SamplePayload
from datastore.history import HistoryStore, build_default_history
from models.records import Sample
from services.analyzer import TremorAnalyzer
from services.frequency import FrequencyEstimator
from services.session import SessionController, evaluate_session, now_ms
from services.severity import SeverityScorer
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

COMPLETED_SESSION_LIMIT = 256


class SessionManager:
    """Coordinates session controllers, the analyzer and the history store.

    Only running sessions keep their controller. Once a session stops, by
    request or by timeout, the controller is dropped and its final record
    is remembered for the most recent ``completed_limit`` sessions.
    """

    def __init__(
        self,
        analyzer: TremorAnalyzer,
        history: HistoryStore,
        settings: Settings,
        completed_limit: int = COMPLETED_SESSION_LIMIT,
    ) -> None:
        self.analyzer = analyzer
        self.history = history
        self.settings = settings
        self.completed_limit = completed_limit
        self._sessions: Dict[str, SessionController] = {}
        self._completed: OrderedDict[str, Optional[MeasurementRecord]] = OrderedDict()
        self._sessions_lock = Lock()

    def start_session(self) -> SessionController:
        session_id = str(uuid4())
        controller = SessionController(
            analyzer=self.analyzer,
            history=self.history,
            duration_ms=self.settings.session_duration_ms,
            min_session_samples=self.settings.min_session_samples,
            live_window=self.settings.live_window,
            live_min_samples=self.settings.live_min_samples,
            live_update_every=self.settings.live_update_every,
            session_id=session_id,
            on_finish=self._retire,
        )
        with self._sessions_lock:
            self._sessions[session_id] = controller
        controller.start()
        return controller

    def get_session(self, session_id: str) -> SessionController:
        """Return the controller of a running session.

        Raises ``RuntimeError`` for a session that has already finished and
        ``KeyError`` for an unknown one.
        """
        with self._sessions_lock:
            controller = self._sessions.get(session_id)
            finished = session_id in self._completed
        if controller is not None:
            return controller
        if finished:
            raise RuntimeError(f"Session {session_id!r} is no longer collecting samples.")
        raise KeyError(f"Session {session_id!r} not found.")

    def add_samples(
        self, session_id: str, payloads: Iterable[SamplePayload]
    ) -> Optional[LivePreview]:
        """Feed samples to a running session; returns its latest preview."""
        controller = self.get_session(session_id)
        if not controller.is_running:
            raise RuntimeError(f"Session {session_id!r} is no longer collecting samples.")

        arrival_ms = now_ms()
        for payload in payloads:
            if payload.has_reading:
                controller.add_sample(payload.to_sample(arrival_ms))
        return controller.last_preview

    def stop_session(self, session_id: str) -> MeasurementRecord:
        with self._sessions_lock:
            controller = self._sessions.get(session_id)
            record = self._completed.get(session_id)
            finished = session_id in self._completed
        if controller is not None:
            record = controller.stop()
        elif not finished:
            raise KeyError(f"Session {session_id!r} not found.")
        if record is None:
            raise RuntimeError(f"Session {session_id!r} ended without a record.")
        return record

    def record_series(
        self, samples: Sequence[Sample], timestamp_ms: Optional[int] = None
    ) -> MeasurementRecord:
        """Evaluate an already-captured series as one completed session."""
        record = evaluate_session(
            samples,
            analyzer=self.analyzer,
            min_session_samples=self.settings.min_session_samples,
            timestamp_ms=timestamp_ms if timestamp_ms is not None else now_ms(),
        )
        self.history.append(record)
        return record

    def shutdown(self) -> None:
        """Stop every running session, recording whatever each collected."""
        with self._sessions_lock:
            controllers = list(self._sessions.values())
        running = [controller for controller in controllers if controller.is_running]
        if running:
            logger.info("Stopping sessions on shutdown", extra={"record_count": len(running)})
        for controller in running:
            controller.stop()
        with self._sessions_lock:
            self._sessions.clear()

    def _retire(self, controller: SessionController) -> None:
        session_id = controller.session_id
        if session_id is None:
            return
        with self._sessions_lock:
            self._sessions.pop(session_id, None)
            self._completed[session_id] = controller.last_record
            self._completed.move_to_end(session_id)
            while len(self._completed) > self.completed_limit:
                self._completed.popitem(last=False)


def build_analyzer(settings: Settings) -> TremorAnalyzer:
    return TremorAnalyzer(
        estimator=FrequencyEstimator(),
        scorer=SeverityScorer(frequency_threshold_hz=settings.frequency_threshold_hz),
        sample_rate_hz=settings.sample_rate_hz,
    )


@lru_cache
def build_default_manager() -> SessionManager:
    """Factory that wires the manager with configured defaults."""
    settings = get_settings()
    return SessionManager(
        analyzer=build_analyzer(settings),
        history=build_default_history(),
        settings=settings,
    )
