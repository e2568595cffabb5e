from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .config import ComputationConfig, QueryConfig, SourceConfig
from .metrics import COL_CPU, COL_SYSTEM, COL_VENDOR, REQUIRED_COLUMNS, evaluate
from .query import build_request
from .results import OutputRecord, ResultRecord, assemble
from .table import RawRow, parse_table
from .transport import HttpTransport, Transport

logger = logging.getLogger(__name__)

# QueryConfig attribute -> column the criterion matches against.
LOCAL_CRITERIA = (
    ("vendor", COL_VENDOR),
    ("system", COL_SYSTEM),
    ("cpu", COL_CPU),
)


@dataclass
class RunStats:
    rows: int = 0
    passed: int = 0

    @property
    def skipped(self) -> int:
        return self.rows - self.passed


def run_query(
    query: QueryConfig,
    computation: ComputationConfig,
    transport: Optional[Transport] = None,
    source: Optional[SourceConfig] = None,
    stats: Optional[RunStats] = None,
) -> Iterator[OutputRecord]:
    """Fetch the result table and return the passing systems lazily.

    Configuration, fetch and header problems raise before this returns.
    Rows are parsed and evaluated only as the caller iterates; re-run the
    query to start over.
    """
    computation.validate()
    request = build_request(query, source)
    transport = transport or HttpTransport()
    raw = transport.fetch(request)
    rows = parse_table(raw, required=REQUIRED_COLUMNS)
    if getattr(transport, "filters_locally", False):
        rows = filter_rows(rows, query)
    stats = stats if stats is not None else RunStats()
    return assemble(_evaluate_rows(rows, computation, stats))


def row_matches(row: RawRow, query: QueryConfig) -> bool:
    """Case-insensitive substring match on every name filter that is set."""
    for attr, column in LOCAL_CRITERIA:
        wanted = getattr(query, attr)
        if wanted and wanted.casefold() not in row.get(column, "").casefold():
            return False
    return True


def filter_rows(rows: Iterable[RawRow], query: QueryConfig) -> Iterator[RawRow]:
    return (row for row in rows if row_matches(row, query))


def _evaluate_rows(
    rows: Iterator[RawRow],
    computation: ComputationConfig,
    stats: RunStats,
) -> Iterator[ResultRecord]:
    for row in rows:
        stats.rows += 1
        rec = evaluate(row, computation)
        if rec is None:
            continue
        stats.passed += 1
        yield rec
    logger.info(
        "Evaluated %d rows: %d passed, %d skipped (threshold %d megacycles)",
        stats.rows,
        stats.passed,
        stats.skipped,
        computation.threshold,
    )
