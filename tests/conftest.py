"""Shared fixtures: canned dstat output, a fake launcher and a recording sink."""

import textwrap
from types import SimpleNamespace

import pytest

from dstat_probe.diagnostics import DiagnosticSink

BANNER = "------memory-usage----- ----total-cpu-usage---- -dsk/total- -net/total- ---paging-- ---system--"
HEADER = " used  buff  cach  free| usr sys idl wai hiq siq| read  writ| recv  send|  in   out | int   csw "
ROW = "1024k  512k  256k 2048k|  3   1  96   0   0   0|  12k   40k| 812B  1.1k|   0     0 | 523   911 "


class RecordingSink(DiagnosticSink):
    def __init__(self):
        self.infos = []
        self.warnings = []
        self.errors = []

    def info(self, message):
        self.infos.append(message)

    def warning(self, message):
        self.warnings.append(message)

    def error(self, message):
        self.errors.append(message)


class FakeLauncher:
    """Records launches and lets tests push lines into the registered callback."""

    def __init__(self, error=None):
        self.error = error
        self.launched = []
        self.shutdowns = []
        self.on_line = None

    def launch(self, argv, env, on_line):
        if self.error is not None:
            raise self.error
        self.launched.append(list(argv))
        self.on_line = on_line
        return SimpleNamespace(argv=list(argv))

    def shutdown(self, handle, force=False):
        self.shutdowns.append((handle, force))

    def emit(self, *lines):
        for line in lines:
            self.on_line(line)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def launcher():
    return FakeLauncher()


def write_fake_dstat(tmp_path, rows=3):
    """Write a script that prints a dstat session, one bad row, then idles."""
    script = tmp_path / "fake_dstat.py"
    script.write_text(textwrap.dedent(f"""
        import time
        print({BANNER!r}, flush=True)
        print({HEADER!r}, flush=True)
        for _ in range({rows}):
            print({ROW!r}, flush=True)
        print("1 2 3", flush=True)
        print({ROW!r}, flush=True)
        time.sleep(60)
    """))
    return script
