"""Parsing of CSV accelerometer recordings."""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

from models.records import Sample

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("x", "y", "z")
TIMESTAMP_COLUMN = "captured_at_ms"


@dataclass(slots=True)
class RowError:
    row_number: int
    reason: str


@dataclass
class ParsedRecording:
    samples: List[Sample] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)


def _parse_axis(raw: Optional[str]) -> Optional[float]:
    candidate = (raw or "").strip()
    if not candidate:
        return None
    value = float(candidate)
    if not math.isfinite(value):
        raise ValueError(f"non-finite axis value {candidate!r}")
    return value


def parse_recording(
    text: str,
    start_ms: int = 0,
    sample_rate_hz: float = 100.0,
    object_key: Optional[str] = None,
) -> ParsedRecording:
    """Parse ``x,y,z[,captured_at_ms]`` rows into samples.

    Blank axis cells count as zero, but a row with all three blank carries
    no reading. Rows without a timestamp are placed on the nominal sampling
    grid starting at ``start_ms``. Malformed rows, including NaN or infinite
    axis values, are skipped and reported in ``errors``.
    """
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValueError("CSV file is missing a header row.")

    normalized = {name.lower().strip(): name for name in reader.fieldnames if name}
    missing = [column for column in REQUIRED_COLUMNS if column not in normalized]
    if missing:
        raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

    x_col, y_col, z_col = (normalized[column] for column in REQUIRED_COLUMNS)
    ts_col = normalized.get(TIMESTAMP_COLUMN)
    interval_ms = 1000.0 / sample_rate_hz

    parsed = ParsedRecording()
    for row_number, row in enumerate(reader, start=2):
        try:
            x = _parse_axis(row.get(x_col))
            y = _parse_axis(row.get(y_col))
            z = _parse_axis(row.get(z_col))
        except ValueError:
            _skip(parsed, row_number, "invalid numeric value", object_key)
            continue
        if x is None and y is None and z is None:
            _skip(parsed, row_number, "no acceleration values", object_key)
            continue

        ts_raw = (row.get(ts_col) or "").strip() if ts_col else ""
        if ts_raw:
            try:
                captured_at_ms = int(ts_raw)
            except ValueError:
                _skip(parsed, row_number, "invalid timestamp", object_key)
                continue
        else:
            captured_at_ms = start_ms + round(len(parsed.samples) * interval_ms)

        parsed.samples.append(Sample.from_axes(x, y, z, captured_at_ms))

    return parsed


def _skip(parsed: ParsedRecording, row_number: int, reason: str, object_key: Optional[str]) -> None:
    parsed.errors.append(RowError(row_number=row_number, reason=reason))
    logger.warning(
        "Skipping row %d: %s",
        row_number,
        reason,
        extra={"row_number": row_number, "reason": reason, "object_key": object_key},
    )
