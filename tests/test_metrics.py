from __future__ import annotations

from datetime import date

import pytest

from specsizer.core.config import ComputationConfig
from specsizer.core.metrics import evaluate, parse_published


def _row(result="540", baseline="2656", cores="16", chips="2", published="Jun-2012", **extra) -> dict:
    row = {
        "Hardware Vendor": "Contoso",
        "System": "Contoso R740 (Intel Xeon E5-2650)",
        "Processor": "Intel Xeon E5-2650",
        "Processor MHz": "2000",
        "# Cores": cores,
        "# Chips": chips,
        "# Cores Per Chip": "8",
        "Operating System": "Windows Server 2012",
        "Result": result,
        "Baseline": baseline,
        "Published": published,
    }
    row.update(extra)
    return row


def test_current_baseline_megacycles() -> None:
    rec = evaluate(_row(), ComputationConfig())

    assert rec is not None
    assert rec.result == 540.0
    assert rec.result_per_core == 33.75
    assert rec.mcycles_per_core == 2000.0
    assert rec.mcycles_total == 32000.0
    assert rec.cores == 16 and rec.chips == 2
    assert rec.published == date(2012, 6, 1)


def test_legacy_baseline_megacycles() -> None:
    rec = evaluate(_row(result="300"), ComputationConfig(benchmark="2010"))

    assert rec is not None
    assert rec.result_per_core == 18.75
    assert rec.mcycles_per_core == 3333.0
    assert rec.mcycles_total == 53328.0


def test_requirement_above_total_skips_row() -> None:
    assert evaluate(_row(), ComputationConfig(min_megacycles=35000)) is None


def test_overhead_raises_threshold() -> None:
    with_overhead = ComputationConfig(min_megacycles=30000, overhead=10)
    assert with_overhead.threshold == 33000
    assert evaluate(_row(), with_overhead) is None

    assert evaluate(_row(), ComputationConfig(min_megacycles=30000, overhead=0)) is not None


def test_threshold_equal_to_total_passes() -> None:
    assert evaluate(_row(), ComputationConfig(min_megacycles=32000)) is not None


def test_vcpu_scaling_uses_configured_cores() -> None:
    cfg = ComputationConfig(cores=16, ratio=2, vcpu=4)
    rec = evaluate(_row(), cfg)

    assert rec is not None
    assert rec.result == 67.5
    assert rec.result_per_core == 4.22
    assert rec.mcycles_per_core == 250.0
    assert rec.mcycles_total == 4000.0


@pytest.mark.parametrize(
    "result, baseline",
    [("0", "2656"), ("-1", "2656"), ("540", "0"), ("540", "-3"), ("0", "0")],
)
def test_non_positive_scores_are_skipped(result: str, baseline: str) -> None:
    assert evaluate(_row(result=result, baseline=baseline), ComputationConfig()) is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"result": "--"},
        {"baseline": ""},
        {"cores": "n/a"},
        {"chips": "2.5"},
        {"published": "someday"},
    ],
)
def test_unreadable_fields_are_skipped(overrides: dict) -> None:
    assert evaluate(_row(**overrides), ComputationConfig()) is None


def test_core_and_chip_bounds() -> None:
    assert evaluate(_row(), ComputationConfig(min_cores=17)) is None
    assert evaluate(_row(), ComputationConfig(max_cores=8)) is None
    assert evaluate(_row(), ComputationConfig(chips=1)) is None
    assert evaluate(_row(), ComputationConfig(min_chips=2, max_chips=4)) is not None


def test_result_per_core_rounds_to_two_places() -> None:
    rec = evaluate(_row(result="100", cores="3", chips="1"), ComputationConfig())
    assert rec is not None
    assert rec.result_per_core == 33.33


def test_evaluate_is_deterministic() -> None:
    cfg = ComputationConfig(cores=16, ratio=1.5, vcpu=7, overhead=20, min_megacycles=10)
    assert evaluate(_row(), cfg) == evaluate(_row(), cfg)


ROWS = [
    _row(result=str(r), cores=str(c), chips=str(ch))
    for r, c, ch in [(540, 16, 2), (120, 4, 1), (900, 24, 2), (300, 8, 1), (1600, 32, 4), (75, 2, 1)]
]


def _passing(cfg: ComputationConfig) -> list:
    return [i for i, row in enumerate(ROWS) if evaluate(row, cfg) is not None]


@pytest.mark.parametrize("n", [2, 8, 16, 32])
def test_exact_count_matches_equal_bounds(n: int) -> None:
    assert _passing(ComputationConfig(cores=n)) == _passing(ComputationConfig(min_cores=n, max_cores=n))
    assert _passing(ComputationConfig(chips=n // 2 or 1)) == _passing(
        ComputationConfig(min_chips=n // 2 or 1, max_chips=n // 2 or 1)
    )


def test_more_overhead_never_admits_more_rows() -> None:
    counts = [len(_passing(ComputationConfig(min_megacycles=20000, overhead=o))) for o in range(0, 101, 10)]
    assert counts == sorted(counts, reverse=True)
    assert counts[0] > counts[-1]


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Jun-2012", date(2012, 6, 1)),
        ("Jun 2012", date(2012, 6, 1)),
        ("2013-05-14", date(2013, 5, 14)),
        ("14-May-2013", date(2013, 5, 14)),
    ],
)
def test_parse_published(text: str, expected: date) -> None:
    assert parse_published(text) == expected


def test_parse_published_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_published("sometime in 2012")
