from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple
from urllib.parse import urlencode

from .config import QueryConfig, SourceConfig

# Columns the dump omits unless asked for explicitly.
PROJECTED_COLUMNS = ("BASELINE", "CPUMHZ", "COMPANY")
PROJECT_WIDTH = "256"

# QueryConfig attribute -> server-side field name.
CRITERIA = (
    ("vendor", "COMPANY"),
    ("system", "SYSTEM"),
    ("cpu", "CPU"),
)


@dataclass(frozen=True)
class RequestDescriptor:
    url: str
    params: Tuple[Tuple[str, str], ...]
    timeout: float

    @property
    def full_url(self) -> str:
        return f"{self.url}?{urlencode(self.params)}"


def build_request(query: QueryConfig, source: SourceConfig | None = None) -> RequestDescriptor:
    """Turn the name filters into a dump request for the whole result set."""
    source = source or SourceConfig()
    params = [
        ("conf", source.conf),
        ("op", "dump"),
        ("format", "csvdump"),
    ]
    params.extend((f"proj-{col}", PROJECT_WIDTH) for col in PROJECTED_COLUMNS)

    for attr, server_field in CRITERIA:
        value = getattr(query, attr)
        if value:
            params.append((f"critop-{server_field}", "contains"))
            params.append((f"crit2-{server_field}", value))

    return RequestDescriptor(url=source.url, params=tuple(params), timeout=float(source.timeout))
