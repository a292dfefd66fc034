"""Dominant tremor frequency estimation by windowed autocorrelation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

# Candidate frequencies are scanned in integer tenths of a hertz.
BAND_LOW_TENTHS = 30
BAND_HIGH_TENTHS = 80
MIN_ESTIMATION_SAMPLES = 50


@dataclass(frozen=True, slots=True)
class FrequencyEstimate:
    frequency: float = 0.0
    power: float = 0.0


class FrequencyEstimator:
    """Finds the strongest periodicity in the 3.0-8.0 Hz band.

    Each candidate frequency ``f`` is turned into a lag of
    ``floor(sample_rate_hz / f)`` samples and scored with the sum of the
    absolute lagged products of the detrended series. The first candidate
    (in ascending frequency order) reaching the highest score wins.
    ``power`` is that score divided by the window length.

    The lag is measured in samples, so irregular sensor timing is accepted
    as an approximation of the nominal rate.
    """

    def __init__(
        self,
        low_tenths: int = BAND_LOW_TENTHS,
        high_tenths: int = BAND_HIGH_TENTHS,
        min_samples: int = MIN_ESTIMATION_SAMPLES,
    ) -> None:
        if low_tenths <= 0 or high_tenths < low_tenths:
            raise ValueError("Frequency band must be positive and non-empty.")
        self.low_tenths = low_tenths
        self.high_tenths = high_tenths
        self.min_samples = min_samples

    def estimate(self, detrended: Sequence[float], sample_rate_hz: float) -> FrequencyEstimate:
        n = len(detrended)
        if n < self.min_samples:
            return FrequencyEstimate()

        max_corr = 0.0
        dominant = 0.0
        for tenths in range(self.low_tenths, self.high_tenths + 1):
            candidate = tenths / 10
            period = math.floor(sample_rate_hz / candidate)
            if period >= n:
                continue

            corr = self.lagged_abs_correlation(detrended, period)
            if corr > max_corr:
                max_corr = corr
                dominant = candidate

        return FrequencyEstimate(frequency=dominant, power=max_corr / n)

    @staticmethod
    def lagged_abs_correlation(series: Sequence[float], lag: int) -> float:
        """Sum of ``|series[i] * series[i + lag]|`` over the overlapping span."""
        corr = 0.0
        for i in range(len(series) - lag):
            corr += abs(series[i] * series[i + lag])
        return corr
