"""Severity scoring and interpretation bands."""

from __future__ import annotations

from enum import Enum

AMPLITUDE_WEIGHT = 0.8
FREQUENCY_WEIGHT = 0.1
POWER_WEIGHT = 0.1

MAX_SEVERITY = 10.0
MIN_SEVERITY = 0.0

DEFAULT_FREQUENCY_THRESHOLD_HZ = 1.0


class SeverityBand(str, Enum):
    """Qualitative bands partitioning the 0-10 severity scale."""

    minimal = "minimal"
    mild = "mild"
    moderate = "moderate"
    significant = "significant"

    @property
    def label(self) -> str:
        return _BAND_LABELS[self]


_BAND_LABELS = {
    SeverityBand.minimal: "Minimal or absent tremor",
    SeverityBand.mild: "Mild tremor",
    SeverityBand.moderate: "Moderate tremor",
    SeverityBand.significant: "Significant tremor",
}


def classify(level: float) -> SeverityBand:
    if level < 2:
        return SeverityBand.minimal
    if level < 4:
        return SeverityBand.mild
    if level < 7:
        return SeverityBand.moderate
    return SeverityBand.significant


def interpret(level: float) -> str:
    """Human readable label for a severity level."""
    return classify(level).label


def amplitude_subscore(rms: float) -> float:
    if rms < 0.05:
        return 0.0
    if rms < 0.2:
        return 3.0
    if rms < 0.5:
        return 6.0
    if rms < 1.0:
        return 8.0
    return 10.0


def power_subscore(power: float) -> float:
    if power < 0.01:
        return 0.0
    if power < 0.05:
        return 5.0
    return 10.0


class SeverityScorer:
    """Combines amplitude, frequency and autocorrelation power into 0-10.

    The frequency contribution is binary: any detected periodicity above
    ``frequency_threshold_hz`` earns the full sub-score. The threshold is
    intentionally lenient and is exposed as configuration
    (``TREMOR_FREQUENCY_THRESHOLD_HZ``) pending product review.
    """

    def __init__(self, frequency_threshold_hz: float = DEFAULT_FREQUENCY_THRESHOLD_HZ) -> None:
        self.frequency_threshold_hz = frequency_threshold_hz

    def frequency_subscore(self, frequency: float) -> float:
        return 10.0 if frequency > self.frequency_threshold_hz else 0.0

    def score(self, rms: float, frequency: float, power: float) -> float:
        weighted = (
            amplitude_subscore(rms) * AMPLITUDE_WEIGHT
            + self.frequency_subscore(frequency) * FREQUENCY_WEIGHT
            + power_subscore(power) * POWER_WEIGHT
        )
        return min(MAX_SEVERITY, max(MIN_SEVERITY, weighted))
