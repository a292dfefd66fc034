"""Domain values shared by the analysis engine and the session layer."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Sample:
    """A single 3-axis acceleration reading (m/s², gravity included)."""

    x: float
    y: float
    z: float
    magnitude: float
    captured_at_ms: int

    @classmethod
    def from_axes(
        cls,
        x: Optional[float],
        y: Optional[float],
        z: Optional[float],
        captured_at_ms: int,
    ) -> Sample:
        # Sensors occasionally report a missing axis; it counts as zero.
        ax = float(x or 0.0)
        ay = float(y or 0.0)
        az = float(z or 0.0)
        return cls(
            x=ax,
            y=ay,
            z=az,
            magnitude=math.sqrt(ax * ax + ay * ay + az * az),
            captured_at_ms=int(captured_at_ms),
        )


@dataclass(frozen=True, slots=True)
class Metrics:
    """Result of analysing one sample series."""

    amplitude_rms: float = 0.0
    dominant_frequency: float = 0.0
    tremor_power: float = 0.0
    severity_level: float = 0.0
