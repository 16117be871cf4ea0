"""Exceptions raised while collecting and parsing dstat output."""

from __future__ import annotations


class DStatProbeError(Exception):
    """Base class for all dstat_probe errors."""


class InvalidNumberFormat(DStatProbeError, ValueError):
    """A token could not be decoded to a number."""


class FormatDrift(DStatProbeError):
    """The banner or header line does not match the expected layout."""


class RowParseFailure(DStatProbeError):
    """A data line does not match the fixed 18-column layout."""

    def __init__(self, line: str) -> None:
        super().__init__(f"Can't parse line: '{line}'.")
        self.line = line


class ProcessLaunchFailure(DStatProbeError):
    """The dstat process could not be started."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"Can not start '{command}' process due to exception: '{reason}'.")
        self.command = command
        self.reason = reason
