from __future__ import annotations

import csv
from typing import Dict, Iterable, Iterator, List, Tuple

from .errors import ParseError

RawRow = Dict[str, str]


def _records(raw: str) -> Iterator[Tuple[int, List[str]]]:
    # csv keeps quoted newlines inside a single record
    reader = csv.reader(raw.splitlines())
    for fields in reader:
        if not fields or all(not f.strip() for f in fields):
            continue
        yield reader.line_num, [f.strip() for f in fields]


def parse_table(raw: str, required: Iterable[str] = ()) -> Iterator[RawRow]:
    """Split a CSV dump into one mapping per data line, header first.

    The header is read before this returns, so a missing header or missing
    required columns fail immediately. Ragged data lines raise ParseError
    when they are reached.
    """
    records = _records(raw or "")
    try:
        header_line, header = next(records)
    except StopIteration:
        raise ParseError("response has no header line") from None
    except csv.Error as exc:
        raise ParseError(f"unreadable header: {exc}", line=1) from exc

    missing = [col for col in required if col not in header]
    if missing:
        raise ParseError(f"header lacks columns: {', '.join(missing)}", line=header_line)

    return _rows(header, records)


def _rows(header: List[str], records: Iterator[Tuple[int, List[str]]]) -> Iterator[RawRow]:
    width = len(header)
    while True:
        try:
            line, fields = next(records)
        except StopIteration:
            return
        except csv.Error as exc:
            raise ParseError(f"unreadable row: {exc}") from exc
        if len(fields) != width:
            raise ParseError(f"expected {width} fields, found {len(fields)}", line=line)
        yield dict(zip(header, fields))
