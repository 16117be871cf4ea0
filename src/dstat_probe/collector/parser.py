"""Line classifier and row parser for a streaming dstat session.

dstat prints a banner naming its report sections, a header naming every
column, and then one data row per interval::

    ------memory-usage----- ----total-cpu-usage---- -dsk/total- -net/total- ---paging-- ---system--
     used  buff  cach  free|usr sys idl wai hiq siq| read  writ| recv  send|  in   out | int   csw
     1.2G  120M 3.4G  10.1G|  3   1  96   0   0   0|  12k   40k| 812B  1.1k|   0     0 | 523   911

The line's position in the stream selects how it is handled. Problems with
a single line are reported to the diagnostic sink and never end the session.
"""

from __future__ import annotations

import enum
import logging
import re
from typing import Callable

from ..diagnostics import DiagnosticSink
from ..errors import FormatDrift, InvalidNumberFormat, RowParseFailure
from .base import Sample
from .schema import SECTIONS, build_sample, current_millis

logger = logging.getLogger(__name__)


def _banner_pattern() -> re.Pattern[str]:
    titles = [re.escape(s.title) + "-*" for s in SECTIONS]
    return re.compile(r"\W*\w*-*" + " -*".join(titles) + r"\s*")


def _header_pattern() -> re.Pattern[str]:
    groups = [r"\s+".join(re.escape(label) for label in s.labels) for s in SECTIONS]
    return re.compile(r"\s*" + r"\s*\|\s*".join(groups) + r"\s*")


BANNER_LINE = _banner_pattern()
HEADER_LINE = _header_pattern()

# digits, or an optional integer part with a fraction; then at most one unit character
VALUE_TOKEN = re.compile(r"(?:\d*\.\d+|\d+)\w?", re.ASCII)


class LineState(enum.Enum):
    """Parsing state selected by a line's position in the stream."""

    BANNER = "banner"
    HEADER = "header"
    DATA = "data"

    @classmethod
    def for_position(cls, position: int) -> LineState:
        if position < 0:
            raise ValueError(f"Line position must be non-negative, got {position}")
        if position == 0:
            return cls.BANNER
        if position == 1:
            return cls.HEADER
        return cls.DATA


def check_banner(line: str) -> None:
    """Raise :class:`FormatDrift` unless *line* is the expected banner."""
    if not BANNER_LINE.fullmatch(line):
        raise FormatDrift(f"Unexpected first line: '{line}'.")


def check_header(line: str) -> None:
    """Raise :class:`FormatDrift` unless *line* names the expected columns."""
    if not HEADER_LINE.fullmatch(line):
        raise FormatDrift(
            f"Header line does not match expected header [exp={HEADER_LINE.pattern}, act={line}]."
        )


def split_row(line: str) -> tuple[str, ...]:
    """Split a data line into its 18 value tokens, section by section.

    Sections are separated by ``|`` and values within a section by
    whitespace. Raises :class:`RowParseFailure` when a section is missing,
    has the wrong number of values, or holds a token that is not a number.
    """
    parts = line.split("|")
    if len(parts) != len(SECTIONS):
        raise RowParseFailure(line)

    tokens: list[str] = []
    for section, part in zip(SECTIONS, parts):
        fields = part.split()
        if len(fields) != len(section.labels):
            raise RowParseFailure(line)
        for field in fields:
            if not VALUE_TOKEN.fullmatch(field):
                raise RowParseFailure(line)
        tokens.extend(fields)
    return tuple(tokens)


class LineParser:
    """Stateful parser for one session of dstat output.

    Each call to :meth:`feed` consumes one line. Decoded samples are handed
    to *on_sample*; diagnostics go to *sink*.
    """

    def __init__(
        self,
        on_sample: Callable[[Sample], None],
        sink: DiagnosticSink,
        clock: Callable[[], int] = current_millis,
    ) -> None:
        self._on_sample = on_sample
        self._sink = sink
        self._clock = clock
        self._position = 0

    @property
    def lines_consumed(self) -> int:
        return self._position

    def feed(self, line: str) -> None:
        """Classify and handle *line*, then advance the line position."""
        state = LineState.for_position(self._position)
        self._position += 1

        if state is LineState.BANNER:
            self._handle_banner(line)
        elif state is LineState.HEADER:
            self._handle_header(line)
        else:
            self._handle_data(line)

    def _handle_banner(self, line: str) -> None:
        try:
            check_banner(line)
        except FormatDrift as exc:
            self._sink.warning(str(exc))

    def _handle_header(self, line: str) -> None:
        try:
            check_header(line)
        except FormatDrift as exc:
            self._sink.error(str(exc))

    def _handle_data(self, line: str) -> None:
        try:
            tokens = split_row(line)
        except RowParseFailure as exc:
            self._sink.error(str(exc))
            return

        try:
            sample = build_sample(tokens, self._clock)
        except InvalidNumberFormat as exc:
            self._sink.error(f"Can't parse line '{line}' due to exception: '{exc}'.")
            return

        logger.debug("Parsed sample at %d", sample.timestamp_ms)
        self._on_sample(sample)
