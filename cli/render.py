from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _severity_color(level: float) -> str:
    if level < 2:
        return typer.colors.GREEN
    if level < 4:
        return typer.colors.CYAN
    if level < 7:
        return typer.colors.YELLOW
    return typer.colors.RED


def _clock(timestamp_ms: Any) -> str:
    if not isinstance(timestamp_ms, int):
        return "?"
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%H:%M")


def render_record(payload: Dict[str, Any]) -> None:
    echo_heading("Measurement")
    if payload.get("error"):
        echo_key_values([("sample_count", payload.get("sample_count"))])
        typer.secho(str(payload.get("interpretation")), fg=typer.colors.RED)
        return

    level = float(payload.get("severity_level") or 0.0)
    echo_key_values(
        [
            ("sample_count", payload.get("sample_count")),
            ("severity_level", f"{level:.1f}/10"),
            ("dominant_frequency", f"{float(payload.get('dominant_frequency') or 0.0):.2f} Hz"),
            ("amplitude_rms", f"{float(payload.get('amplitude_rms') or 0.0):.3f}"),
            ("tremor_power", f"{float(payload.get('tremor_power') or 0.0):.3f}"),
        ]
    )
    typer.secho(str(payload.get("interpretation")), fg=_severity_color(level))


def render_history(records: List[Dict[str, Any]]) -> None:
    echo_heading("Today's measurements")
    if not records:
        typer.echo("No measurements today.")
        return
    # Newest first, as the history list is read.
    for record in reversed(records):
        when = _clock(record.get("timestamp_ms"))
        if record.get("error"):
            typer.echo(f"  - {when}  {record.get('interpretation')}")
            continue
        level = float(record.get("severity_level") or 0.0)
        frequency = float(record.get("dominant_frequency") or 0.0)
        typer.echo(
            f"  - {when}  {level:.1f}/10  {frequency:.2f} Hz  {record.get('interpretation')}"
        )


def render_summary(payload: Dict[str, Any]) -> None:
    echo_heading("Daily summary")

    def fmt(value: Any) -> str:
        return "-" if value is None else f"{float(value):.1f}"

    echo_key_values(
        [
            ("measurements", payload.get("measurement_count")),
            ("errors", payload.get("error_count")),
            ("average", fmt(payload.get("average"))),
            ("maximum", fmt(payload.get("maximum"))),
            ("minimum", fmt(payload.get("minimum"))),
        ]
    )
