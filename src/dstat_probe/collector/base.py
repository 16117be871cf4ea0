"""Base interface for probes and the sample they produce."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any

SAMPLE_WIDTH = 18


@dataclass(frozen=True)
class Sample:
    """A single dstat observation.

    ``values`` holds one number per schema column, in schema order.
    """

    timestamp_ms: int
    values: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.values) != SAMPLE_WIDTH:
            raise ValueError(f"Sample needs {SAMPLE_WIDTH} values, got {len(self.values)}")
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))

    def to_dict(self, names: list[str]) -> dict[str, Any]:
        """Pair the timestamp and values with *names* (as from ``metadata()``)."""
        return dict(zip(names, (self.timestamp_ms, *self.values)))


class BaseProbe(abc.ABC):
    """Abstract base class for probes driven by a reporting layer."""

    @abc.abstractmethod
    def start(self, cfg: Any) -> None:
        """Begin a collection session."""

    @abc.abstractmethod
    def stop(self) -> None:
        """End the collection session."""

    @abc.abstractmethod
    def metadata(self) -> list[str]:
        """Column names, starting with the timestamp column."""

    @abc.abstractmethod
    def drain(self) -> list[Sample]:
        """Return samples collected since the previous drain."""
