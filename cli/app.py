from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_history, render_record, render_summary
from services.recordings import parse_recording
from services.session import evaluate_session, now_ms
from services.sessions import build_analyzer
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for analysing tremor recordings and reviewing today's history.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Tracker API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("analyze")
def analyze_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV recording."),
) -> None:
    """Score a CSV recording locally without contacting the service."""
    settings = get_settings()
    try:
        parsed = parse_recording(
            file.read_text(encoding="utf-8"),
            start_ms=now_ms(),
            sample_rate_hz=settings.sample_rate_hz,
            object_key=str(file),
        )
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if parsed.errors:
        typer.secho(f"Skipped {len(parsed.errors)} malformed row(s).", fg=typer.colors.YELLOW)

    record = evaluate_session(
        parsed.samples,
        analyzer=build_analyzer(settings),
        min_session_samples=settings.min_session_samples,
        timestamp_ms=now_ms(),
    )
    render_record(record.model_dump(mode="json"))
    if record.error:
        raise typer.Exit(code=2)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV recording."),
) -> None:
    """Upload a CSV recording and store its measurement in today's history."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    payload = state.client.upload_recording(file)
    skipped = payload.get("skipped_rows") or []
    if skipped:
        typer.secho(f"Skipped {len(skipped)} malformed row(s).", fg=typer.colors.YELLOW)
    render_record(payload["record"])


@app.command("history")
def history_command(ctx: typer.Context) -> None:
    """List today's measurements, newest first."""
    state = _get_state(ctx)
    render_history(state.client.get_today())


@app.command("summary")
def summary_command(ctx: typer.Context) -> None:
    """Show average, maximum and minimum severity for today."""
    state = _get_state(ctx)
    render_summary(state.client.get_summary())


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        help="Write the CSV to this file instead of standard output.",
    ),
) -> None:
    """Export today's measurements as CSV."""
    state = _get_state(ctx)
    text = state.client.export_csv()
    if output is None:
        typer.echo(text, nl=False)
        return
    output.write_text(text, encoding="utf-8")
    typer.secho(f"Exported to {output}", fg=typer.colors.GREEN)
