"""Column schema of ``dstat -m --all`` output and the sample builder."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Sequence

from ..errors import RowParseFailure
from .base import Sample
from .decoder import parse_value_with_unit

TIME_COLUMN = "Time, ms"


@dataclass(frozen=True)
class Section:
    """A group of columns sharing one banner title."""

    title: str
    prefix: str
    labels: tuple[str, ...]


@dataclass(frozen=True)
class Column:
    """One data column: its header label and how to scale the decoded value."""

    name: str
    label: str
    section: str
    divisor: float = 1.0

    def convert(self, raw: float) -> float:
        return raw / self.divisor


SECTIONS: tuple[Section, ...] = (
    Section("memory-usage", "memory", ("used", "buff", "cach", "free")),
    Section("total-cpu-usage", "cpu", ("usr", "sys", "idl", "wai", "hiq", "siq")),
    Section("dsk/total", "dsk", ("read", "writ")),
    Section("net/total", "net", ("recv", "send")),
    Section("paging", "paging", ("in", "out")),
    Section("system", "system", ("int", "csw")),
)

# Memory is reported in bytes; samples carry kilobytes.
_KB_SECTIONS = {"memory-usage"}

COLUMNS: tuple[Column, ...] = tuple(
    Column(
        name=f"{section.prefix} {label}",
        label=label,
        section=section.title,
        divisor=1024.0 if section.title in _KB_SECTIONS else 1.0,
    )
    for section in SECTIONS
    for label in section.labels
)


def column_names() -> list[str]:
    """Timestamp column followed by the 18 data column names."""
    return [TIME_COLUMN] + [c.name for c in COLUMNS]


def current_millis() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def build_sample(tokens: Sequence[str], clock: Callable[[], int] = current_millis) -> Sample:
    """Decode one row of tokens into a :class:`Sample`.

    Memory columns are converted from bytes to kilobytes; the rest pass
    through. The timestamp is taken from *clock* once every column has been
    decoded. Decoding is all-or-nothing: an
    :class:`~dstat_probe.errors.InvalidNumberFormat` from any column
    propagates and no sample is built.
    """
    if len(tokens) != len(COLUMNS):
        raise RowParseFailure(" ".join(tokens))

    values = tuple(col.convert(parse_value_with_unit(tok)) for col, tok in zip(COLUMNS, tokens))

    return Sample(timestamp_ms=clock(), values=values)
