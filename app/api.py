"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status

from app.schemas import (
    AnalysisResponse,
    DailySummary,
    LivePreview,
    MeasurementRecord,
    MetricsPayload,
    RecordingResponse,
    RowErrorPayload,
    SampleBatch,
    SessionSamplesResponse,
    SessionStartResponse,
)
from services.recordings import parse_recording
from services.report import export_csv, export_filename, summarize
from services.session import now_ms
from services.sessions import SessionManager, build_default_manager
from services.severity import classify

router = APIRouter()


def get_manager() -> SessionManager:
    return build_default_manager()


@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    summary="Analyse a sample series without recording it.",
)
async def analyze_samples(
    batch: SampleBatch,
    manager: SessionManager = Depends(get_manager),
) -> AnalysisResponse:
    arrival_ms = now_ms()
    samples = batch.to_samples(arrival_ms)
    metrics = manager.analyzer.analyze(samples)
    band = classify(metrics.severity_level)
    return AnalysisResponse(
        sample_count=len(samples),
        metrics=MetricsPayload.from_metrics(metrics),
        band=band,
        interpretation=band.label,
    )


@router.post(
    "/recordings",
    status_code=status.HTTP_201_CREATED,
    response_model=RecordingResponse,
    summary="Upload a CSV recording and store its measurement.",
)
async def upload_recording(
    file: UploadFile = File(..., description="CSV file with x,y,z[,captured_at_ms] columns."),
    manager: SessionManager = Depends(get_manager),
) -> RecordingResponse:
    contents = await file.read()
    await file.close()
    if not contents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )

    received_ms = now_ms()
    try:
        parsed = parse_recording(
            contents.decode("utf-8"),
            start_ms=received_ms,
            sample_rate_hz=manager.settings.sample_rate_hz,
            object_key=file.filename,
        )
    except (UnicodeDecodeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    record = manager.record_series(parsed.samples, timestamp_ms=received_ms)
    return RecordingResponse(
        record=record,
        skipped_rows=[
            RowErrorPayload(row_number=error.row_number, reason=error.reason)
            for error in parsed.errors
        ],
    )


@router.post(
    "/sessions",
    status_code=status.HTTP_201_CREATED,
    response_model=SessionStartResponse,
    summary="Start a timed measurement session.",
)
async def start_session(
    manager: SessionManager = Depends(get_manager),
) -> SessionStartResponse:
    controller = manager.start_session()
    return SessionStartResponse(
        session_id=controller.session_id or "",
        duration_ms=controller.duration_ms,
    )


@router.post(
    "/sessions/{session_id}/samples",
    response_model=SessionSamplesResponse,
    summary="Push samples into a running session.",
)
async def push_samples(
    session_id: str,
    batch: SampleBatch,
    manager: SessionManager = Depends(get_manager),
) -> SessionSamplesResponse:
    try:
        controller = manager.get_session(session_id)
        preview: Optional[LivePreview] = manager.add_samples(session_id, batch.samples)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    return SessionSamplesResponse(
        session_id=session_id,
        sample_count=len(controller.buffer),
        running=controller.is_running,
        preview=preview,
    )


@router.post(
    "/sessions/{session_id}/stop",
    response_model=MeasurementRecord,
    summary="Stop a session and return its measurement.",
)
async def stop_session(
    session_id: str,
    manager: SessionManager = Depends(get_manager),
) -> MeasurementRecord:
    try:
        return manager.stop_session(session_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc


@router.get(
    "/history/today",
    response_model=list[MeasurementRecord],
    summary="List today's measurements, oldest first.",
)
async def history_today(
    manager: SessionManager = Depends(get_manager),
) -> list[MeasurementRecord]:
    return manager.history.load_today()


@router.get(
    "/history/summary",
    response_model=DailySummary,
    summary="Summary statistics over today's measurements.",
)
async def history_summary(
    manager: SessionManager = Depends(get_manager),
) -> DailySummary:
    return summarize(manager.history.load_today())


@router.get(
    "/history/export",
    summary="Download today's measurements as CSV.",
    response_class=Response,
)
async def history_export(
    manager: SessionManager = Depends(get_manager),
) -> Response:
    records = manager.history.load_today()
    if not records:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No measurements recorded today.",
        )
    return Response(
        content=export_csv(records),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
