from __future__ import annotations

from .config import ComputationConfig, QueryConfig, SourceConfig, load_profile
from .errors import ConfigError, FetchError, ParseError, SizingError
from .pipeline import RunStats, run_query
from .results import DEFAULT_FIELDS, OutputRecord, ResultRecord

__all__ = [
    "ComputationConfig",
    "QueryConfig",
    "SourceConfig",
    "load_profile",
    "ConfigError",
    "FetchError",
    "ParseError",
    "SizingError",
    "RunStats",
    "run_query",
    "DEFAULT_FIELDS",
    "OutputRecord",
    "ResultRecord",
]
