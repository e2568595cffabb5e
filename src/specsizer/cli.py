from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from .core.config import Profile, SourceConfig, load_profile
from .core.errors import SizingError
from .core.pipeline import RunStats, run_query
from .core.query import build_request
from .core.registry import BENCHMARKS
from .core.results import ALL_FIELDS, DEFAULT_FIELDS, WRITERS, OutputRecord, write_records
from .core.transport import FileTransport, HttpTransport, Transport
from .log import setup_logging


app = typer.Typer(no_args_is_help=True)


def _profile(profile: Optional[Path], source_config: Optional[Path]) -> Profile:
    prof = load_profile(profile) if profile else Profile()
    if source_config:
        prof.source = SourceConfig.from_toml(source_config)
    return prof


def render_table(records: Iterable[OutputRecord], labels: Iterable[str], console: Console | None = None) -> int:
    labels = tuple(labels)
    table = Table(*labels)
    count = 0
    for out in records:
        table.add_row(*(str(v) for v in out.as_dict(labels).values()))
        count += 1
    (console or Console()).print(table)
    return count


@app.command("list-types")
def list_types() -> None:
    for name, baseline in BENCHMARKS.items():
        print(
            f"- {name}: baseline {baseline.mcycles_baseline} MHz, "
            f"{baseline.mcycles_core_score} per core ({baseline.description})"
        )


@app.command()
def url(
    cpu: Optional[str] = typer.Option(None, help="Processor name contains"),
    vendor: Optional[str] = typer.Option(None, help="Hardware vendor contains"),
    system: Optional[str] = typer.Option(None, help="System name contains"),
    profile: Optional[Path] = typer.Option(None, help="TOML or YAML sizing profile"),
    source_config: Optional[Path] = typer.Option(None, help="TOML with a [source] table"),
) -> None:
    """Print the request that `query` would send."""
    try:
        prof = _profile(profile, source_config)
        request = build_request(prof.query_config(cpu=cpu, vendor=vendor, system=system), prof.source)
    except SizingError as exc:
        print(f"[red]{exc}")
        raise typer.Exit(1)
    typer.echo(request.full_url)


@app.command()
def query(
    cpu: Optional[str] = typer.Option(None, help="Processor name contains"),
    vendor: Optional[str] = typer.Option(None, help="Hardware vendor contains"),
    system: Optional[str] = typer.Option(None, help="System name contains"),
    benchmark: Optional[str] = typer.Option(None, "--type", help="Benchmark baseline: 2010 or 2013"),
    cores: Optional[int] = typer.Option(None, min=1, help="Exact core count"),
    min_cores: Optional[int] = typer.Option(None, min=1),
    max_cores: Optional[int] = typer.Option(None, min=1),
    chips: Optional[int] = typer.Option(None, min=1, help="Exact chip count"),
    min_chips: Optional[int] = typer.Option(None, min=1),
    max_chips: Optional[int] = typer.Option(None, min=1),
    min_megacycles: Optional[int] = typer.Option(None, min=0, help="Required total megacycles"),
    overhead: Optional[int] = typer.Option(None, min=0, max=100, help="Percent added to the requirement"),
    ratio: Optional[float] = typer.Option(None, min=1.0, max=2.0, help="vCPU:pCPU ratio"),
    vcpu: Optional[int] = typer.Option(None, min=1, max=100, help="Allocated vCPUs (needs --cores)"),
    profile: Optional[Path] = typer.Option(None, help="TOML or YAML sizing profile"),
    source_config: Optional[Path] = typer.Option(None, help="TOML with a [source] table"),
    from_file: Optional[Path] = typer.Option(None, help="Use a saved CSV dump instead of downloading"),
    output: Optional[Path] = typer.Option(None, help="Write results to this file"),
    fmt: str = typer.Option("table", "--format", help="table, csv or jsonl"),
    all_fields: bool = typer.Option(False, help="Include every computed field"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Download published results and list systems meeting the requirement."""
    setup_logging(verbose)
    if fmt != "table" and fmt not in WRITERS:
        print(f"[red]Unknown format '{fmt}'")
        raise typer.Exit(1)
    if output is not None and fmt == "table":
        fmt = "csv"

    stats = RunStats()
    transport: Optional[Transport] = None
    try:
        prof = _profile(profile, source_config)
        query_cfg = prof.query_config(cpu=cpu, vendor=vendor, system=system)
        computation = prof.computation_config(
            benchmark=benchmark,
            cores=cores,
            min_cores=min_cores,
            max_cores=max_cores,
            chips=chips,
            min_chips=min_chips,
            max_chips=max_chips,
            min_megacycles=min_megacycles,
            overhead=overhead,
            ratio=ratio,
            vcpu=vcpu,
        )
        transport = FileTransport(from_file) if from_file else HttpTransport()
        records = run_query(query_cfg, computation, transport=transport, source=prof.source, stats=stats)
        labels = ALL_FIELDS if all_fields else DEFAULT_FIELDS

        if output is not None:
            written = write_records(records, output, fmt=fmt, all_fields=all_fields)
            print(f"[green]Wrote {written} systems to {output}", file=sys.stderr)
        elif fmt == "table":
            render_table(records, labels)
        else:
            writer = WRITERS[fmt](sys.stdout, labels)
            for out in records:
                writer.write(out)
    except SizingError as exc:
        print(f"[red]{type(exc).__name__}: {exc}", file=sys.stderr)
        raise typer.Exit(1)
    finally:
        if hasattr(transport, "close"):
            transport.close()

    if stats.passed == 0:
        print(f"[yellow]No systems matched ({stats.rows} rows checked)", file=sys.stderr)
