from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import IO, Any, Dict, Iterable, Iterator, Tuple

# Output label -> ResultRecord attribute, in column order.
FIELD_LABELS: Tuple[Tuple[str, str], ...] = (
    ("Vendor", "vendor"),
    ("System", "system"),
    ("CPU", "cpu"),
    ("Cores", "cores"),
    ("Chips", "chips"),
    ("CoresPerChip", "cores_per_chip"),
    ("Speed", "speed"),
    ("OS", "os"),
    ("Result", "result"),
    ("ResultPerCore", "result_per_core"),
    ("Baseline", "baseline"),
    ("MCyclesPerCore", "mcycles_per_core"),
    ("MCyclesTotal", "mcycles_total"),
    ("Published", "published"),
)
ALL_FIELDS: Tuple[str, ...] = tuple(label for label, _ in FIELD_LABELS)
DEFAULT_FIELDS: Tuple[str, ...] = (
    "Vendor",
    "System",
    "Cores",
    "Chips",
    "CoresPerChip",
    "Speed",
    "Result",
    "Published",
)
_ATTR = dict(FIELD_LABELS)


@dataclass(frozen=True)
class ResultRecord:
    vendor: str
    system: str
    cpu: str
    cores: int
    chips: int
    cores_per_chip: str
    speed: str
    os: str
    result: float
    result_per_core: float
    baseline: float
    mcycles_per_core: float
    mcycles_total: float
    published: date


@dataclass(frozen=True)
class OutputRecord:
    """A passing system plus the subset of fields shown by default."""

    record: ResultRecord
    default_fields: Tuple[str, ...] = DEFAULT_FIELDS

    def __getitem__(self, label: str) -> Any:
        try:
            return getattr(self.record, _ATTR[label])
        except KeyError:
            raise KeyError(f"Unknown field '{label}'") from None

    def as_dict(self, labels: Iterable[str] = ALL_FIELDS) -> Dict[str, Any]:
        return {label: self[label] for label in labels}

    def visible_dict(self) -> Dict[str, Any]:
        return self.as_dict(self.default_fields)


def assemble(records: Iterable[ResultRecord]) -> Iterator[OutputRecord]:
    for rec in records:
        yield OutputRecord(rec)


def _format_value(val: Any) -> Any:
    if isinstance(val, date):
        return val.isoformat()
    return val


class CsvWriter:
    """Write output records as CSV, one header line then one row per record."""

    def __init__(self, fp: IO[str], labels: Iterable[str] = DEFAULT_FIELDS):
        self.labels = tuple(labels)
        self._writer = csv.DictWriter(fp, fieldnames=self.labels)
        self._writer.writeheader()
        self.rows = 0

    def write(self, out: OutputRecord) -> None:
        self._writer.writerow({k: _format_value(v) for k, v in out.as_dict(self.labels).items()})
        self.rows += 1


class JsonlWriter:
    def __init__(self, fp: IO[str], labels: Iterable[str] = ALL_FIELDS):
        self.labels = tuple(labels)
        self._fp = fp
        self.rows = 0

    def write(self, out: OutputRecord) -> None:
        rec = {k: _format_value(v) for k, v in out.as_dict(self.labels).items()}
        self._fp.write(json.dumps(rec) + "\n")
        self.rows += 1


WRITERS = {"csv": CsvWriter, "jsonl": JsonlWriter}


def write_records(records: Iterable[OutputRecord], path: str | Path, fmt: str = "csv", all_fields: bool = False) -> int:
    """Export records to ``path``; returns the number of rows written.

    Rows go to a sibling ``.tmp`` file that replaces ``path`` only once every
    record was written, so a failure mid-stream leaves nothing behind.
    """
    cls = WRITERS[fmt]
    dst = Path(path)
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_name(dst.name + ".tmp")
    try:
        with tmp.open("w", encoding="utf-8", newline="") as fp:
            writer = cls(fp, ALL_FIELDS if all_fields else _labels_for(fmt))
            for out in records:
                writer.write(out)
        tmp.replace(dst)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    return writer.rows


def _labels_for(fmt: str) -> Tuple[str, ...]:
    return DEFAULT_FIELDS if fmt == "csv" else ALL_FIELDS
