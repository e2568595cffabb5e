"""Per-row megacycle arithmetic.

Every derived score is rounded with Python's ``round(x, 2)``, i.e. half to
even on the binary value, so results are reproducible run to run.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from .config import ComputationConfig
from .results import ResultRecord
from .table import RawRow

logger = logging.getLogger(__name__)

COL_VENDOR = "Hardware Vendor"
COL_SYSTEM = "System"
COL_CPU = "Processor"
COL_SPEED = "Processor MHz"
COL_CORES = "# Cores"
COL_CHIPS = "# Chips"
COL_CORES_PER_CHIP = "# Cores Per Chip"
COL_OS = "Operating System"
COL_RESULT = "Result"
COL_BASELINE = "Baseline"
COL_PUBLISHED = "Published"

REQUIRED_COLUMNS = (
    COL_VENDOR,
    COL_SYSTEM,
    COL_CPU,
    COL_SPEED,
    COL_CORES,
    COL_CHIPS,
    COL_CORES_PER_CHIP,
    COL_OS,
    COL_RESULT,
    COL_BASELINE,
    COL_PUBLISHED,
)

_DATE_FORMATS = ("%b-%Y", "%b %Y", "%Y-%m-%d", "%d-%b-%Y", "%d %b %Y", "%m/%d/%Y", "%B %Y")


def parse_published(text: str) -> date:
    """Parse the free-text publication field; month-only values map to day 1."""
    value = " ".join((text or "").split())
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date '{text}'")


def _to_int(text: str) -> int:
    # Some dumps render counts as "16.0"
    number = float(text)
    if not number.is_integer():
        raise ValueError(f"'{text}' is not a whole number")
    return int(number)


def scale_to_vcpu(result: float, cfg: ComputationConfig) -> float:
    """Score of a vCPU allocation on a host with ``cfg.cores`` physical cores."""
    return round(result / (cfg.cores * cfg.ratio) * cfg.vcpu, 2)


def megacycles_per_core(result: float, cores: int, cfg: ComputationConfig) -> float:
    baseline = cfg.baseline
    return round((result / cores * baseline.mcycles_baseline) / baseline.mcycles_core_score, 2)


def evaluate(row: RawRow, cfg: ComputationConfig) -> Optional[ResultRecord]:
    """Compute the derived fields for one row; None when the row is skipped."""
    try:
        baseline = float(row[COL_BASELINE])
        result = float(row[COL_RESULT])
    except (KeyError, ValueError):
        logger.debug("Skipping %s: unreadable scores", row.get(COL_SYSTEM))
        return None
    if baseline <= 0 or result <= 0:
        return None

    try:
        cores = _to_int(row[COL_CORES])
        chips = _to_int(row[COL_CHIPS])
    except (KeyError, ValueError):
        logger.debug("Skipping %s: unreadable core/chip counts", row.get(COL_SYSTEM))
        return None
    if cores <= 0:
        return None

    if cfg.vcpu:
        result = scale_to_vcpu(result, cfg)

    result_per_core = round(result / cores, 2)
    mcycles_core = megacycles_per_core(result, cores, cfg)
    mcycles_total = mcycles_core * cores

    min_cores, max_cores = cfg.core_bounds
    min_chips, max_chips = cfg.chip_bounds
    if mcycles_total < cfg.threshold:
        return None
    if not (min_cores <= cores <= max_cores and min_chips <= chips <= max_chips):
        return None

    try:
        published = parse_published(row.get(COL_PUBLISHED, ""))
    except ValueError:
        logger.debug("Skipping %s: %s", row.get(COL_SYSTEM), row.get(COL_PUBLISHED))
        return None

    return ResultRecord(
        vendor=row.get(COL_VENDOR, ""),
        system=row.get(COL_SYSTEM, ""),
        cpu=row.get(COL_CPU, ""),
        cores=cores,
        chips=chips,
        cores_per_chip=row.get(COL_CORES_PER_CHIP, ""),
        speed=row.get(COL_SPEED, ""),
        os=row.get(COL_OS, ""),
        result=result,
        result_per_core=result_per_core,
        baseline=baseline,
        mcycles_per_core=mcycles_core,
        mcycles_total=mcycles_total,
        published=published,
    )
