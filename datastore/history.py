from __future__ import annotations
import json
import logging
from datetime import date, datetime
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Callable, List, Optional

from app.schemas import MeasurementRecord
from settings import get_settings

logger = logging.getLogger(__name__)


def local_date_of(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


class HistoryStore:
    """Append-only log of measurement records, optionally mirrored to JSON."""

    def __init__(
        self,
        persistence_path: Optional[Path] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._records: List[MeasurementRecord] = []
        self.persistence_path = persistence_path
        self._today = today
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def append(self, record: MeasurementRecord) -> None:
        with self._lock:
            self._records.append(record.model_copy(deep=True))
            self._persist()
        logger.info(
            "Measurement recorded",
            extra={
                "status": "error" if record.error else "ok",
                "sample_count": record.sample_count,
                "severity_level": record.severity_level,
            },
        )

    def load_today(self) -> list[MeasurementRecord]:
        """Return today's records in insertion order, as deep copies."""
        today = self._today()
        with self._lock:
            return [
                item.model_copy(deep=True)
                for item in self._records
                if local_date_of(item.timestamp_ms) == today
            ]

    def scan(self) -> list[MeasurementRecord]:
        """Return deep copies of every stored record."""

        with self._lock:
            return [item.model_copy(deep=True) for item in self._records]

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = [item.model_dump(mode="json") for item in self._records]
        self.persistence_path.write_text(json.dumps(payload, indent=2))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "History file unreadable; starting empty",
                extra={"object_key": str(self.persistence_path)},
            )
            data = []

        for payload in data:
            self._records.append(MeasurementRecord.model_validate(payload))


@lru_cache
def build_default_history(path: Optional[str] = None) -> HistoryStore:
    settings = get_settings()
    history_path = settings.history_path if path is None else path
    persistence = Path(history_path) if history_path else None
    return HistoryStore(persistence_path=persistence)
