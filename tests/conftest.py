from __future__ import annotations

import math
from typing import Callable, List

import pytest

from models.records import Sample

SampleFactory = Callable[..., List[Sample]]


def build_sine_samples(
    count: int,
    frequency_hz: float = 5.0,
    amplitude: float = 2.0,
    baseline: float = 9.8,
    sample_rate_hz: float = 100.0,
    start_ms: int = 0,
) -> List[Sample]:
    """Samples whose magnitude is ``baseline + amplitude * sin(2πft)``."""
    samples = []
    for i in range(count):
        t = i / sample_rate_hz
        z = baseline + amplitude * math.sin(2 * math.pi * frequency_hz * t)
        samples.append(Sample.from_axes(0.0, 0.0, z, start_ms + round(t * 1000)))
    return samples


def build_still_samples(count: int, z: float = 9.8) -> List[Sample]:
    return [Sample.from_axes(0.0, 0.0, z, i * 10) for i in range(count)]


@pytest.fixture()
def sine_samples() -> SampleFactory:
    return build_sine_samples


@pytest.fixture()
def still_samples() -> SampleFactory:
    return build_still_samples


def sine_csv(count: int, frequency_hz: float = 5.0, amplitude: float = 2.0) -> str:
    lines = ["x,y,z"]
    for sample in build_sine_samples(count, frequency_hz=frequency_hz, amplitude=amplitude):
        lines.append(f"{sample.x},{sample.y},{sample.z!r}")
    return "\n".join(lines) + "\n"


@pytest.fixture()
def recording_csv() -> Callable[..., str]:
    return sine_csv
