from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.uploaded_path: Path | None = None
        self.record: Dict[str, Any] = {
            "timestamp_ms": 1_704_103_200_000,
            "interpretation": "Moderate tremor",
            "error": False,
            "sample_count": 950,
            "amplitude_rms": 0.31,
            "dominant_frequency": 4.8,
            "tremor_power": 0.07,
            "severity_level": 6.8,
        }
        self.failed: Dict[str, Any] = {
            "timestamp_ms": 1_704_103_500_000,
            "interpretation": "Error: measurement too short",
            "error": True,
            "sample_count": 40,
        }
        self.closed = False

    def upload_recording(self, path: Path) -> Dict[str, Any]:
        self.uploaded_path = path
        return {"record": self.record, "skipped_rows": [{"row_number": 3, "reason": "invalid timestamp"}]}

    def get_today(self) -> List[Dict[str, Any]]:
        return [self.record, self.failed]

    def get_summary(self) -> Dict[str, Any]:
        return {
            "measurement_count": 2,
            "error_count": 1,
            "average": 6.8,
            "maximum": 6.8,
            "minimum": 6.8,
        }

    def export_csv(self) -> str:
        return "date,time,severity_level\n2024-01-01,09:30:00,6.80\n"

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def test_analyze_scores_recording_locally(runner: CliRunner, stub: StubClient, tmp_path, recording_csv) -> None:
    csv_path = tmp_path / "tremor.csv"
    csv_path.write_text(recording_csv(300))

    result = runner.invoke(app, ["analyze", str(csv_path)])

    assert result.exit_code == 0
    assert "Significant tremor" in result.stdout
    assert "4.80 Hz" in result.stdout
    assert stub.uploaded_path is None


def test_analyze_short_recording_exits_with_error(runner: CliRunner, stub: StubClient, tmp_path, recording_csv) -> None:
    csv_path = tmp_path / "short.csv"
    csv_path.write_text(recording_csv(30))

    result = runner.invoke(app, ["analyze", str(csv_path)])

    assert result.exit_code == 2
    assert "measurement too short" in result.stdout


def test_analyze_rejects_file_without_axes(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    csv_path = tmp_path / "bad.csv"
    csv_path.write_text("a,b\n1,2\n")

    result = runner.invoke(app, ["analyze", str(csv_path)])

    assert result.exit_code == 1


def test_upload(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("x,y,z\n0,0,9.8\n")

    result = runner.invoke(app, ["--base-url", "http://tracker:9000/", "upload", str(csv_path)])

    assert result.exit_code == 0
    assert stub.uploaded_path == csv_path
    assert stub.config.base_url == "http://tracker:9000"
    assert "Skipped 1 malformed row" in result.stdout
    assert "6.8/10" in result.stdout
    assert stub.closed is True


def test_history_lists_newest_first(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["history"])

    assert result.exit_code == 0
    output = result.stdout
    assert output.index("measurement too short") < output.index("Moderate tremor")
    assert "4.80 Hz" in output


def test_summary(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["summary"])

    assert result.exit_code == 0
    assert "measurements: 2" in result.stdout
    assert "average: 6.8" in result.stdout


def test_export_to_file(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    target = tmp_path / "out.csv"

    result = runner.invoke(app, ["export", "--output", str(target)])

    assert result.exit_code == 0
    assert target.read_text().startswith("date,time,severity_level")
    assert stub.closed is True


def test_export_to_stdout(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["export"])

    assert result.exit_code == 0
    assert "2024-01-01,09:30:00,6.80" in result.stdout
