"""Tremor analysis over a frozen sample series."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from models.records import Metrics, Sample
from services.frequency import FrequencyEstimator
from services.severity import SeverityScorer

DEFAULT_SAMPLE_RATE_HZ = 100.0


class TremorAnalyzer:
    """Pure analysis component that can be unit tested in isolation.

    Holds no per-call state: the same series always yields identical
    metrics.
    """

    def __init__(
        self,
        estimator: Optional[FrequencyEstimator] = None,
        scorer: Optional[SeverityScorer] = None,
        sample_rate_hz: float = DEFAULT_SAMPLE_RATE_HZ,
    ) -> None:
        self.estimator = estimator or FrequencyEstimator()
        self.scorer = scorer or SeverityScorer()
        self.sample_rate_hz = sample_rate_hz

    def analyze(self, samples: Sequence[Sample]) -> Metrics:
        # Copy on read so a caller appending to its buffer cannot affect us.
        magnitudes = tuple(sample.magnitude for sample in samples)
        if not magnitudes:
            return Metrics()

        detrended = self.detrend(magnitudes)
        rms = math.sqrt(math.fsum(value * value for value in detrended) / len(detrended))

        estimate = self.estimator.estimate(detrended, self.sample_rate_hz)
        severity = self.scorer.score(rms, estimate.frequency, estimate.power)

        return Metrics(
            amplitude_rms=rms,
            dominant_frequency=estimate.frequency,
            tremor_power=estimate.power,
            severity_level=severity,
        )

    @staticmethod
    def detrend(values: Sequence[float]) -> tuple[float, ...]:
        """Subtract the series mean (gravity and sensor bias)."""
        if not values:
            return ()
        mean = math.fsum(values) / len(values)
        return tuple(value - mean for value in values)
