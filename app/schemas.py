"""Pydantic schemas for persisted records and the HTTP API layer."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import Metrics, Sample
from services.severity import SeverityBand


class SamplePayload(BaseModel):
    """One accelerometer reading as sent by a client."""

    x: Optional[float] = Field(default=None, allow_inf_nan=False)
    y: Optional[float] = Field(default=None, allow_inf_nan=False)
    z: Optional[float] = Field(default=None, allow_inf_nan=False)
    captured_at_ms: Optional[int] = Field(
        default=None, description="Capture time in epoch milliseconds; defaults to arrival time."
    )

    @property
    def has_reading(self) -> bool:
        """False when the event carried no acceleration at all."""
        return not (self.x is None and self.y is None and self.z is None)

    def to_sample(self, default_ms: int) -> Sample:
        captured = self.captured_at_ms if self.captured_at_ms is not None else default_ms
        return Sample.from_axes(self.x, self.y, self.z, captured)


class SampleBatch(BaseModel):
    samples: List[SamplePayload] = Field(default_factory=list)

    def to_samples(self, default_ms: int) -> List[Sample]:
        return [payload.to_sample(default_ms) for payload in self.samples if payload.has_reading]


class MetricsPayload(BaseModel):
    amplitude_rms: float = Field(..., ge=0)
    dominant_frequency: float = Field(..., ge=0)
    tremor_power: float = Field(..., ge=0)
    severity_level: float = Field(..., ge=0, le=10)

    @classmethod
    def from_metrics(cls, metrics: Metrics) -> MetricsPayload:
        return cls(
            amplitude_rms=metrics.amplitude_rms,
            dominant_frequency=metrics.dominant_frequency,
            tremor_power=metrics.tremor_power,
            severity_level=metrics.severity_level,
        )


class AnalysisResponse(BaseModel):
    """Stateless analysis of a posted sample series."""

    sample_count: int = Field(..., ge=0)
    metrics: MetricsPayload
    band: SeverityBand
    interpretation: str


class MeasurementRecord(BaseModel):
    """Outcome of one completed or aborted session.

    Error records carry no metric fields.
    """

    timestamp_ms: int
    interpretation: str
    error: bool = False
    sample_count: int = Field(default=0, ge=0)
    amplitude_rms: Optional[float] = None
    dominant_frequency: Optional[float] = None
    tremor_power: Optional[float] = None
    severity_level: Optional[float] = Field(default=None, ge=0, le=10)

    @classmethod
    def from_metrics(
        cls,
        metrics: Metrics,
        timestamp_ms: int,
        interpretation: str,
        sample_count: int,
    ) -> MeasurementRecord:
        return cls(
            timestamp_ms=timestamp_ms,
            interpretation=interpretation,
            error=False,
            sample_count=sample_count,
            amplitude_rms=metrics.amplitude_rms,
            dominant_frequency=metrics.dominant_frequency,
            tremor_power=metrics.tremor_power,
            severity_level=metrics.severity_level,
        )

    @classmethod
    def failed(cls, timestamp_ms: int, interpretation: str, sample_count: int) -> MeasurementRecord:
        return cls(
            timestamp_ms=timestamp_ms,
            interpretation=interpretation,
            error=True,
            sample_count=sample_count,
        )


class LivePreview(BaseModel):
    """Feedback emitted while a session is still collecting samples."""

    metrics: MetricsPayload
    interpretation: str
    sample_count: int = Field(..., ge=0)
    progress_percent: float = Field(..., ge=0, le=100)


class SessionStartResponse(BaseModel):
    session_id: str
    duration_ms: int


class SessionSamplesResponse(BaseModel):
    session_id: str
    sample_count: int
    running: bool
    preview: Optional[LivePreview] = None


class DailySummary(BaseModel):
    """Statistics over today's measurements.

    ``measurement_count`` includes error records; the severity statistics
    only cover successful ones and are ``None`` when there are none.
    """

    measurement_count: int = Field(..., ge=0)
    error_count: int = Field(default=0, ge=0)
    average: Optional[float] = None
    maximum: Optional[float] = None
    minimum: Optional[float] = None


class RowErrorPayload(BaseModel):
    """A recording row that was skipped during parsing."""

    row_number: int = Field(..., ge=1)
    reason: str


class RecordingResponse(BaseModel):
    """History record produced from an uploaded recording."""

    record: MeasurementRecord
    skipped_rows: List[RowErrorPayload] = Field(default_factory=list)
