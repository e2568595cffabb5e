from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError
from .registry import BENCHMARKS, DEFAULT_BENCHMARK, BenchmarkBaseline, get_benchmark

DEFAULT_MIN_CORES = 1
DEFAULT_MAX_CORES = 1024
DEFAULT_MIN_CHIPS = 1
DEFAULT_MAX_CHIPS = 256

OVERHEAD_RANGE = (0, 100)
RATIO_RANGE = (1.0, 2.0)
VCPU_RANGE = (1, 100)

INT_FIELDS = ("cores", "min_cores", "max_cores", "chips", "min_chips", "max_chips", "min_megacycles", "overhead", "vcpu")
FLOAT_FIELDS = ("ratio",)

# Setting any member of a group from the command line replaces the whole group.
OVERRIDE_GROUPS = (
    ("cores", "min_cores", "max_cores"),
    ("chips", "min_chips", "max_chips"),
)

DEFAULT_URL = "https://www.spec.org/cgi-bin/osgresults"
DEFAULT_CONF = "rint2006"
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class QueryConfig:
    cpu: Optional[str] = None
    vendor: Optional[str] = None
    system: Optional[str] = None


@dataclass(frozen=True)
class ComputationConfig:
    benchmark: str = DEFAULT_BENCHMARK
    cores: Optional[int] = None
    min_cores: Optional[int] = None
    max_cores: Optional[int] = None
    chips: Optional[int] = None
    min_chips: Optional[int] = None
    max_chips: Optional[int] = None
    min_megacycles: int = 0
    overhead: int = 0
    ratio: float = 1.0
    vcpu: Optional[int] = None

    @property
    def baseline(self) -> BenchmarkBaseline:
        return get_benchmark(self.benchmark)

    @property
    def core_bounds(self) -> Tuple[int, int]:
        return _bounds(self.cores, self.min_cores, self.max_cores, DEFAULT_MIN_CORES, DEFAULT_MAX_CORES)

    @property
    def chip_bounds(self) -> Tuple[int, int]:
        return _bounds(self.chips, self.min_chips, self.max_chips, DEFAULT_MIN_CHIPS, DEFAULT_MAX_CHIPS)

    @property
    def threshold(self) -> int:
        """Minimum total megacycles with the overhead buffer applied, truncated."""
        return int(self.min_megacycles) * (100 + int(self.overhead)) // 100

    def validate(self) -> "ComputationConfig":
        """Raise ConfigError for contradictory or out-of-range settings."""
        for name in INT_FIELDS + FLOAT_FIELDS:
            value = getattr(self, name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise ConfigError(f"{name} must be a number")

        if self.benchmark not in BENCHMARKS:
            known = ", ".join(sorted(BENCHMARKS))
            raise ConfigError(f"Unknown benchmark type '{self.benchmark}' (expected one of {known})")

        _check_exact_vs_range("cores", self.cores, self.min_cores, self.max_cores)
        _check_exact_vs_range("chips", self.chips, self.min_chips, self.max_chips)

        lo, hi = self.core_bounds
        if lo > hi:
            raise ConfigError(f"min_cores ({lo}) must not exceed max_cores ({hi})")
        lo, hi = self.chip_bounds
        if lo > hi:
            raise ConfigError(f"min_chips ({lo}) must not exceed max_chips ({hi})")

        if self.min_megacycles < 0:
            raise ConfigError("min_megacycles must not be negative")
        _check_range("overhead", self.overhead, OVERHEAD_RANGE)
        _check_range("ratio", self.ratio, RATIO_RANGE)
        if self.vcpu is not None:
            _check_range("vcpu", self.vcpu, VCPU_RANGE)
            # Scaling divides by the configured physical core count.
            if not self.cores:
                raise ConfigError("vcpu scaling requires an exact core count (cores)")
        return self


def _bounds(exact, lo, hi, default_lo: int, default_hi: int) -> Tuple[int, int]:
    if exact is not None:
        return int(exact), int(exact)
    return (
        int(lo) if lo is not None else default_lo,
        int(hi) if hi is not None else default_hi,
    )


def _check_exact_vs_range(name: str, exact, lo, hi) -> None:
    if exact is not None and (lo is not None or hi is not None):
        raise ConfigError(f"{name} cannot be combined with min_{name}/max_{name}")
    if exact is not None and exact < 0:
        raise ConfigError(f"{name} must not be negative")


def _check_range(name: str, value, bounds) -> None:
    lo, hi = bounds
    if value < lo or value > hi:
        raise ConfigError(f"{name} must be between {lo} and {hi}, got {value}")


@dataclass
class SourceConfig:
    url: str = DEFAULT_URL
    conf: str = DEFAULT_CONF
    timeout: float = DEFAULT_TIMEOUT

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "SourceConfig":
        _reject_unknown("source", data, SourceConfig)
        return replace(SourceConfig(), **data)

    @staticmethod
    def from_toml(path: str | Path) -> "SourceConfig":
        import tomllib

        data = tomllib.loads(Path(path).read_text())
        return SourceConfig.from_mapping(data.get("source", data))


@dataclass
class Profile:
    """Saved sizing parameters; command-line flags override these."""

    query: Dict[str, Any] = field(default_factory=dict)
    computation: Dict[str, Any] = field(default_factory=dict)
    source: SourceConfig = field(default_factory=SourceConfig)

    def query_config(self, **overrides: Any) -> QueryConfig:
        return QueryConfig(**_merge(self.query, overrides))

    def computation_config(self, **overrides: Any) -> ComputationConfig:
        return ComputationConfig(**_merge(self.computation, overrides))


def load_profile(path: str | Path) -> Profile:
    """Load a profile from a TOML or YAML file.

    Expected tables are ``query``, ``computation`` and ``source``; any other
    top-level key is rejected.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read profile {path}: {exc}") from exc

    if path.suffix.lower() == ".toml":
        import tomllib

        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Profile {path} is not valid TOML: {exc}") from exc
    else:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Profile {path} is not valid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Profile {path} must contain a mapping")
    extra = sorted(set(data) - {"query", "computation", "source"})
    if extra:
        raise ConfigError(f"Profile {path} has unknown sections: {', '.join(extra)}")

    query = dict(data.get("query") or {})
    computation = dict(data.get("computation") or {})
    _reject_unknown("query", query, QueryConfig)
    _reject_unknown("computation", computation, ComputationConfig)
    for name in INT_FIELDS + FLOAT_FIELDS:
        if computation.get(name) is not None:
            computation[name] = _coerce_number(name, computation[name], float if name in FLOAT_FIELDS else int)
    if "benchmark" in computation:
        computation["benchmark"] = str(computation["benchmark"])
    return Profile(
        query=query,
        computation=computation,
        source=SourceConfig.from_mapping(dict(data.get("source") or {})),
    )


def _coerce_number(name: str, value: Any, kind: type) -> Any:
    """Accept numbers and numeric strings; YAML often quotes them."""
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number") from exc
    if not math.isfinite(number):
        raise ConfigError(f"{name} must be a number")
    if kind is float:
        return number
    if not number.is_integer():
        raise ConfigError(f"{name} must be a whole number, got {value}")
    return int(number)


def _reject_unknown(section: str, data: Dict[str, Any], cls) -> None:
    valid = {f.name for f in fields(cls)}
    unknown = sorted(k for k in data if k not in valid)
    if unknown:
        raise ConfigError(f"Unknown {section} settings: {', '.join(unknown)}")


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for group in OVERRIDE_GROUPS:
        if any(overrides.get(k) is not None for k in group):
            for k in group:
                merged.pop(k, None)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return merged
