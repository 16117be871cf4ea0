"""Probe that gathers statistics printed by the Linux ``dstat`` command."""

from __future__ import annotations

import enum
import logging
import subprocess
import threading
from typing import Protocol

from ..diagnostics import DiagnosticSink, LoggingSink
from ..errors import ProcessLaunchFailure
from .base import BaseProbe, Sample
from .buffer import SampleBuffer
from .launcher import LaunchHandle, ProcessLauncher
from .parser import LineParser
from .schema import column_names

logger = logging.getLogger(__name__)

PATH_KEY = "benchmark.probe.dstat.path"
OPTS_KEY = "benchmark.probe.dstat.opts"

DEFAULT_INTERVAL_SECONDS = 1
DEFAULT_PATH = "dstat"
DEFAULT_OPTS = f"-m --all --noheaders --noupdate {DEFAULT_INTERVAL_SECONDS}"


class PropertyLookup(Protocol):
    """Anything that can resolve a probe property by key."""

    def get(self, key: str) -> str | None: ...


class ProbeState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


def resolve_path(cfg: PropertyLookup) -> str:
    """Path to the dstat executable, or :data:`DEFAULT_PATH` if unset."""
    return cfg.get(PATH_KEY) or DEFAULT_PATH


def resolve_opts(cfg: PropertyLookup) -> list[str]:
    """dstat arguments split on whitespace, or :data:`DEFAULT_OPTS` if unset."""
    opts = cfg.get(OPTS_KEY) or DEFAULT_OPTS
    return opts.split()


class DStatProbe(BaseProbe):
    """Runs ``dstat`` in the background and buffers one sample per interval.

    Usage::

        probe = DStatProbe()
        probe.start(cfg)
        ...
        samples = probe.drain()
        probe.stop()

    Each :meth:`start` begins a session with its own line parser. Samples
    stay in the buffer until drained, including after :meth:`stop`.
    """

    def __init__(
        self,
        launcher: ProcessLauncher | None = None,
        sink: DiagnosticSink | None = None,
    ) -> None:
        self._launcher = launcher or ProcessLauncher()
        self._sink = sink or LoggingSink(logger)
        self._buffer = SampleBuffer()
        self._lock = threading.Lock()
        self._state = ProbeState.IDLE
        self._handle: LaunchHandle | None = None
        self._parser: LineParser | None = None

    @property
    def state(self) -> ProbeState:
        return self._state

    @property
    def lines_consumed(self) -> int:
        """Lines read from dstat in the current (or last) session."""
        return self._parser.lines_consumed if self._parser is not None else 0

    @property
    def name(self) -> str:
        return type(self).__name__

    def start(self, cfg: PropertyLookup) -> None:
        """Launch dstat as configured by *cfg* and begin parsing its output.

        Raises :class:`ProcessLaunchFailure` (after reporting it to the error
        sink) if the process cannot be started; the probe then stays idle.
        """
        with self._lock:
            if self._state is ProbeState.RUNNING:
                self._sink.warning(f"{self.name} is already running, ignoring start.")
                return
            if self._state is ProbeState.STOPPED:
                raise RuntimeError(f"{self.name} has been stopped and cannot be restarted")

            argv = [resolve_path(cfg), *resolve_opts(cfg)]
            command = " ".join(argv)
            parser = LineParser(self._collect, self._sink)

            try:
                handle = self._launcher.launch(argv, {}, parser.feed)
            except (OSError, subprocess.SubprocessError) as exc:
                failure = ProcessLaunchFailure(command, str(exc))
                self._sink.error(str(failure))
                raise failure from exc

            self._handle = handle
            self._parser = parser
            self._state = ProbeState.RUNNING

        self._sink.info(f"{self.name} is started. Command: '{command}'.")

    def stop(self) -> None:
        """Ask dstat to exit. Does nothing unless the probe is running."""
        with self._lock:
            if self._state is not ProbeState.RUNNING or self._handle is None:
                return
            handle = self._handle
            self._state = ProbeState.STOPPED

        self._launcher.shutdown(handle, force=False)
        self._sink.info(f"{self.name} is stopped.")

    def metadata(self) -> list[str]:
        return column_names()

    def drain(self) -> list[Sample]:
        return self._buffer.drain()

    def _collect(self, sample: Sample) -> None:
        self._buffer.append(sample)
