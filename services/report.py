"""Daily summary and CSV export of measurement history."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Iterable, Optional, Sequence

from app.schemas import DailySummary, MeasurementRecord

EXPORT_HEADER = (
    "date",
    "time",
    "severity_level",
    "dominant_frequency_hz",
    "amplitude_rms",
    "interpretation",
)


def summarize(records: Iterable[MeasurementRecord]) -> DailySummary:
    items = list(records)
    levels = [
        item.severity_level
        for item in items
        if not item.error and item.severity_level is not None
    ]
    errors = sum(1 for item in items if item.error)
    if not levels:
        return DailySummary(measurement_count=len(items), error_count=errors)
    return DailySummary(
        measurement_count=len(items),
        error_count=errors,
        average=sum(levels) / len(levels),
        maximum=max(levels),
        minimum=min(levels),
    )


def _fixed(value: Optional[float], digits: int) -> str:
    return "" if value is None else f"{value:.{digits}f}"


def export_csv(records: Sequence[MeasurementRecord]) -> str:
    """Render records plus a trailing statistics block as CSV text.

    Error records keep their row with empty metric cells.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)

    for record in records:
        captured = datetime.fromtimestamp(record.timestamp_ms / 1000)
        writer.writerow(
            (
                captured.strftime("%Y-%m-%d"),
                captured.strftime("%H:%M:%S"),
                _fixed(record.severity_level, 2),
                _fixed(record.dominant_frequency, 2),
                _fixed(record.amplitude_rms, 3),
                record.interpretation,
            )
        )

    summary = summarize(records)
    writer.writerow(())
    writer.writerow(("daily_statistics",))
    writer.writerow(("average", _fixed(summary.average, 2)))
    writer.writerow(("maximum", _fixed(summary.maximum, 2)))
    writer.writerow(("minimum", _fixed(summary.minimum, 2)))
    writer.writerow(("total_measurements", summary.measurement_count))
    return buffer.getvalue()


def export_filename(day: Optional[datetime] = None) -> str:
    stamp = (day or datetime.now()).strftime("%Y-%m-%d")
    return f"tremor_{stamp}.csv"
