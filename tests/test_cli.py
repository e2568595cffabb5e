from __future__ import annotations

import csv
import json
from pathlib import Path

from typer.testing import CliRunner

from specsizer.cli import app

runner = CliRunner()

DUMP = (
    "Hardware Vendor,System,# Cores,# Chips,# Cores Per Chip,Processor,Processor MHz,"
    "Operating System,Result,Baseline,Published\n"
    "Contoso,Contoso R740,16,2,8,Intel Xeon E5-2650,2000,Windows Server 2012,540,2656,Jun-2012\n"
    "Fabrikam,Fabrikam F1,8,1,8,Intel Xeon E5-2620,2000,Windows Server 2012,300,280,Jul-2012\n"
)


def _dump(tmp_path: Path) -> Path:
    path = tmp_path / "dump.csv"
    path.write_text(DUMP, encoding="utf-8")
    return path


def _csv_rows(text: str) -> list:
    # log lines go to stderr, which some click versions mix into output
    lines = [line for line in text.splitlines() if line.startswith(("Vendor,", "Contoso,", "Fabrikam,"))]
    return list(csv.DictReader(lines))


def test_list_types() -> None:
    result = runner.invoke(app, ["list-types"])
    assert result.exit_code == 0
    assert "2010" in result.output
    assert "2013" in result.output


def test_url_includes_filters() -> None:
    result = runner.invoke(app, ["url", "--vendor", "Contoso", "--cpu", "E5"])
    assert result.exit_code == 0
    assert "crit2-COMPANY=Contoso" in result.output
    assert "crit2-CPU=E5" in result.output


def test_query_csv_to_stdout(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["query", "--from-file", str(_dump(tmp_path)), "--format", "csv", "--min-megacycles", "30000"],
    )
    assert result.exit_code == 0, result.output
    rows = _csv_rows(result.output)
    assert [r["System"] for r in rows] == ["Contoso R740"]
    assert rows[0]["Published"] == "2012-06-01"


def test_query_writes_all_fields(tmp_path: Path) -> None:
    out = tmp_path / "out" / "results.jsonl"
    result = runner.invoke(
        app,
        ["query", "--from-file", str(_dump(tmp_path)), "--format", "jsonl", "--all-fields", "--output", str(out)],
    )
    assert result.exit_code == 0, result.output
    lines = [json.loads(line) for line in out.read_text().splitlines()]
    assert [rec["System"] for rec in lines] == ["Contoso R740", "Fabrikam F1"]
    assert lines[0]["MCyclesTotal"] == 32000.0
    assert lines[1]["Baseline"] == 280.0


def test_query_table_output(tmp_path: Path) -> None:
    result = runner.invoke(app, ["query", "--from-file", str(_dump(tmp_path))])
    assert result.exit_code == 0, result.output


def test_query_rejects_conflicting_bounds(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["query", "--from-file", str(_dump(tmp_path)), "--cores", "16", "--min-cores", "8"],
    )
    assert result.exit_code == 1
    assert "ConfigError" in result.output


def test_query_vcpu_needs_cores(tmp_path: Path) -> None:
    result = runner.invoke(app, ["query", "--from-file", str(_dump(tmp_path)), "--vcpu", "4"])
    assert result.exit_code == 1


def test_query_profile_and_override(tmp_path: Path) -> None:
    profile = tmp_path / "sizing.toml"
    profile.write_text("[computation]\nmin_megacycles = 100000\n")
    result = runner.invoke(
        app,
        [
            "query",
            "--from-file", str(_dump(tmp_path)),
            "--profile", str(profile),
            "--min-megacycles", "1000",
            "--format", "csv",
        ],
    )
    assert result.exit_code == 0, result.output
    assert len(_csv_rows(result.output)) == 2


def test_query_out_of_range_overhead(tmp_path: Path) -> None:
    result = runner.invoke(app, ["query", "--from-file", str(_dump(tmp_path)), "--overhead", "150"])
    assert result.exit_code != 0


def test_query_from_file_applies_name_filters(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["query", "--from-file", str(_dump(tmp_path)), "--vendor", "contoso", "--format", "csv"],
    )
    assert result.exit_code == 0, result.output
    assert [r["Vendor"] for r in _csv_rows(result.output)] == ["Contoso"]


def test_query_cli_range_overrides_profile_exact_cores(tmp_path: Path) -> None:
    profile = tmp_path / "sizing.toml"
    profile.write_text("[computation]\ncores = 4\n")
    result = runner.invoke(
        app,
        ["query", "--from-file", str(_dump(tmp_path)), "--profile", str(profile), "--min-cores", "8", "--format", "csv"],
    )
    assert result.exit_code == 0, result.output
    assert len(_csv_rows(result.output)) == 2


def test_query_closes_http_transport_on_success_and_error(monkeypatch) -> None:
    closed = []

    class RecordingTransport:
        def fetch(self, request) -> str:
            return DUMP

        def close(self) -> None:
            closed.append(True)

    monkeypatch.setattr("specsizer.cli.HttpTransport", RecordingTransport)
    result = runner.invoke(app, ["query", "--format", "csv"])
    assert result.exit_code == 0, result.output
    assert closed == [True]

    closed.clear()
    result = runner.invoke(app, ["query", "--vcpu", "4", "--cores", "8", "--min-cores", "2"])
    assert result.exit_code == 1
    assert closed == [True]
