"""Tests for line classification, row splitting and sample building."""

import pytest

from conftest import BANNER, HEADER, ROW
from dstat_probe.collector.base import Sample
from dstat_probe.collector.parser import (
    LineParser,
    LineState,
    check_banner,
    check_header,
    split_row,
)
from dstat_probe.collector.schema import COLUMNS, build_sample, column_names
from dstat_probe.errors import FormatDrift, InvalidNumberFormat, RowParseFailure

ROW_VALUES = [1024, 512, 256, 2048, 3, 1, 96, 0, 0, 0, 12288, 40960, 812, 1126.4, 0, 0, 523, 911]


def _fixed_clock():
    return 1700000000000


# ---------------------------------------------------------------------------
# LineState
# ---------------------------------------------------------------------------

def test_line_state_for_position():
    assert LineState.for_position(0) is LineState.BANNER
    assert LineState.for_position(1) is LineState.HEADER
    assert LineState.for_position(2) is LineState.DATA
    assert LineState.for_position(5000) is LineState.DATA


def test_line_state_rejects_negative_position():
    with pytest.raises(ValueError):
        LineState.for_position(-1)


# ---------------------------------------------------------------------------
# Banner / header checks
# ---------------------------------------------------------------------------

def test_check_banner_accepts_dstat_banner():
    check_banner(BANNER)
    check_banner("-memory-usage- -total-cpu-usage- -dsk/total- -net/total- -paging- -system-  ")


@pytest.mark.parametrize(
    "line",
    [
        "",
        "----total-cpu-usage---- ------memory-usage----- -dsk/total- -net/total- ---paging-- ---system--",
        "------memory-usage----- ----total-cpu-usage---- -dsk/total- -net/total- ---paging--",
    ],
)
def test_check_banner_detects_drift(line):
    with pytest.raises(FormatDrift, match="Unexpected first line"):
        check_banner(line)


def test_check_header_accepts_dstat_header():
    check_header(HEADER)
    check_header("used buff cach free|usr sys idl wai hiq siq|read writ|recv send|in out|int csw")


def test_check_header_detects_drift():
    # 'stl' column from newer dstat versions shifts the cpu section
    drifted = HEADER.replace("siq|", "siq stl|")
    with pytest.raises(FormatDrift, match=r"exp=.*act="):
        check_header(drifted)


# ---------------------------------------------------------------------------
# Row splitting
# ---------------------------------------------------------------------------

def test_split_row_returns_18_tokens():
    tokens = split_row(ROW)
    assert len(tokens) == 18
    assert tokens[:4] == ("1024k", "512k", "256k", "2048k")
    assert tokens[-1] == "911"


def test_split_row_allows_tight_separators():
    tokens = split_row("1 2 3 4|5 6 7 8 9 10|11 12|13 14|15 16|17 18")
    assert tokens == tuple(str(i) for i in range(1, 19))


@pytest.mark.parametrize(
    "line",
    [
        # 17 tokens: one memory column missing
        "1024k  512k  256k|  3   1  96   0   0   0|  12k   40k| 812B  1.1k|   0     0 | 523   911",
        # extra section
        ROW + "| 1 2",
        # separator missing between sections
        "1024k  512k  256k 2048k   3   1  96   0   0   0|  12k   40k| 812B  1.1k|   0     0 | 523   911",
        # not a number
        "1024k  512k  256k 2048k|  3   1  96   0   0   -|  12k   40k| 812B  1.1k|   0     0 | 523   911",
        "",
    ],
)
def test_split_row_rejects_malformed_lines(line):
    with pytest.raises(RowParseFailure):
        split_row(line)


# ---------------------------------------------------------------------------
# Sample building
# ---------------------------------------------------------------------------

def test_build_sample_scales_memory_columns_only():
    sample = build_sample(split_row(ROW), _fixed_clock)
    assert sample.timestamp_ms == 1700000000000
    assert list(sample.values[:4]) == [1024, 512, 256, 2048]
    assert list(sample.values[4:]) == pytest.approx(ROW_VALUES[4:])


def test_build_sample_is_all_or_nothing():
    tokens = list(split_row(ROW))
    tokens[17] = "9x"
    with pytest.raises(InvalidNumberFormat):
        build_sample(tokens, _fixed_clock)


def test_build_sample_rejects_wrong_arity():
    with pytest.raises(RowParseFailure):
        build_sample(["1"] * 17, _fixed_clock)


def test_schema_has_18_named_columns():
    assert len(COLUMNS) == 18
    names = column_names()
    assert names[0] == "Time, ms"
    assert names[1:5] == ["memory used", "memory buff", "memory cach", "memory free"]
    assert names[-2:] == ["system int", "system csw"]
    assert len(names) == 19


def test_sample_requires_18_values():
    with pytest.raises(ValueError):
        Sample(timestamp_ms=0, values=(1.0,) * 17)


def test_sample_to_dict_uses_metadata_names():
    sample = build_sample(split_row(ROW), _fixed_clock)
    record = sample.to_dict(column_names())
    assert record["Time, ms"] == 1700000000000
    assert record["memory used"] == 1024
    assert record["system csw"] == 911


# ---------------------------------------------------------------------------
# LineParser state machine
# ---------------------------------------------------------------------------

class TestLineParser:
    def _parser(self, sink):
        samples = []
        return LineParser(samples.append, sink, clock=_fixed_clock), samples

    def test_well_formed_session(self, sink):
        parser, samples = self._parser(sink)
        for line in (BANNER, HEADER, ROW, ROW):
            parser.feed(line)

        assert len(samples) == 2
        assert list(samples[0].values) == pytest.approx(ROW_VALUES)
        assert sink.warnings == [] and sink.errors == []
        assert parser.lines_consumed == 4

    def test_banner_drift_is_a_warning(self, sink):
        parser, samples = self._parser(sink)
        for line in ("something else", HEADER, ROW):
            parser.feed(line)

        assert len(sink.warnings) == 1
        assert "Unexpected first line: 'something else'" in sink.warnings[0]
        assert sink.errors == []
        assert len(samples) == 1

    def test_header_drift_is_an_error_and_rows_still_parse(self, sink):
        parser, samples = self._parser(sink)
        for line in (BANNER, "bogus header", ROW):
            parser.feed(line)

        assert sink.warnings == []
        assert len(sink.errors) == 1
        assert "Header line does not match expected header" in sink.errors[0]
        assert len(samples) == 1

    def test_short_row_is_discarded_and_session_continues(self, sink):
        parser, samples = self._parser(sink)
        short = "1024k  512k  256k|  3   1  96   0   0   0|  12k   40k| 812B  1.1k|   0     0 | 523   911"
        for line in (BANNER, HEADER, short, ROW):
            parser.feed(line)

        assert len(sink.errors) == 1
        assert sink.errors[0] == f"Can't parse line: '{short}'."
        assert len(samples) == 1
        assert parser.lines_consumed == 4

    def test_bad_unit_is_discarded_with_exception_detail(self, sink):
        parser, samples = self._parser(sink)
        bad = ROW.replace("523", "523x")
        for line in (BANNER, HEADER, bad):
            parser.feed(line)

        assert samples == []
        assert len(sink.errors) == 1
        assert "due to exception" in sink.errors[0]
        assert "Unknown 'x' unit" in sink.errors[0]

    def test_data_on_header_position_is_not_a_sample(self, sink):
        # position 1 is always checked as a header, even when it looks like data
        parser, samples = self._parser(sink)
        for line in (BANNER, ROW):
            parser.feed(line)

        assert samples == []
        assert len(sink.errors) == 1
