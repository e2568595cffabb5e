"""Exchange processor sizing from published SPEC CPU rate results."""

from .core import (
    ComputationConfig,
    ConfigError,
    FetchError,
    OutputRecord,
    ParseError,
    QueryConfig,
    ResultRecord,
    SizingError,
    run_query,
)

__all__ = [
    "ComputationConfig",
    "ConfigError",
    "FetchError",
    "OutputRecord",
    "ParseError",
    "QueryConfig",
    "ResultRecord",
    "SizingError",
    "run_query",
]
