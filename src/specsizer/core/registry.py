from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class BenchmarkBaseline:
    """Reference constants that turn a rate score into megacycles."""

    name: str
    mcycles_baseline: int
    mcycles_core_score: float
    description: str = ""


BENCHMARKS: Dict[str, BenchmarkBaseline] = {
    "2010": BenchmarkBaseline(
        name="2010",
        mcycles_baseline=3333,
        mcycles_core_score=18.75,
        description="Legacy baseline (3333 MHz reference, 18.75 per core)",
    ),
    "2013": BenchmarkBaseline(
        name="2013",
        mcycles_baseline=2000,
        mcycles_core_score=33.75,
        description="Current baseline (2000 MHz reference, 33.75 per core)",
    ),
}

DEFAULT_BENCHMARK = "2013"


def get_benchmark(name: str) -> BenchmarkBaseline:
    baseline = BENCHMARKS.get(str(name))
    if baseline is None:
        raise KeyError(f"Benchmark type '{name}' not found in registry")
    return baseline
