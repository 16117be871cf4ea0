"""Diagnostic sinks that receive warnings and errors from the probe.

The parsing core never logs directly; it reports through a
:class:`DiagnosticSink`, which has an informational channel (``info`` and
``warning``) and an error channel (``error``).
"""

from __future__ import annotations

import abc
import logging
from typing import TextIO

logger = logging.getLogger(__name__)


class DiagnosticSink(abc.ABC):
    """Abstract destination for probe diagnostics."""

    @abc.abstractmethod
    def info(self, message: str) -> None:
        """Report an informational message."""

    @abc.abstractmethod
    def warning(self, message: str) -> None:
        """Report a warning on the informational channel."""

    @abc.abstractmethod
    def error(self, message: str) -> None:
        """Report an error on the error channel."""


class LoggingSink(DiagnosticSink):
    """Routes diagnostics to a :mod:`logging` logger at matching levels."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def info(self, message: str) -> None:
        self._log.info("%s", message)

    def warning(self, message: str) -> None:
        self._log.warning("%s", message)

    def error(self, message: str) -> None:
        self._log.error("%s", message)


class StreamSink(DiagnosticSink):
    """Writes diagnostics to two text streams (e.g. stdout and stderr)."""

    def __init__(self, out: TextIO, err: TextIO) -> None:
        self._out = out
        self._err = err

    def info(self, message: str) -> None:
        self._write(self._out, message)

    def warning(self, message: str) -> None:
        self._write(self._out, f"WARNING: {message}")

    def error(self, message: str) -> None:
        self._write(self._err, f"ERROR: {message}")

    @staticmethod
    def _write(stream: TextIO, message: str) -> None:
        stream.write(message + "\n")
        stream.flush()
