"""Configuration loading for dstat_probe."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .collector.dstat import OPTS_KEY, PATH_KEY


@dataclass
class ProbeConfig:
    """Settings handed to :meth:`DStatProbe.start`.

    ``custom_properties`` holds free-form string properties such as
    ``benchmark.probe.dstat.path`` and ``benchmark.probe.dstat.opts``.
    """

    custom_properties: dict[str, str] = field(default_factory=dict)
    shutdown_timeout_seconds: float = 5.0

    def get(self, key: str) -> str | None:
        """Look up a custom property; ``None`` when it is not set."""
        value = self.custom_properties.get(key)
        return None if value is None else str(value)


@dataclass
class ReporterConfig:
    """How often the CLI drains collected samples."""

    drain_interval_seconds: float = 1.0


@dataclass
class DStatProbeConfig:
    """Top-level dstat_probe configuration."""

    log_level: str = "INFO"
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    reporter: ReporterConfig = field(default_factory=ReporterConfig)


DEFAULT_CONFIG_FILE = "dstat_probe.yaml"

# Environment variables that replace a probe property.
PROPERTY_ENV_VARS = {
    "DSTAT_PROBE_PATH": PATH_KEY,
    "DSTAT_PROBE_OPTS": OPTS_KEY,
}


def _section(data: dict[str, Any], name: str, cls: type) -> dict[str, Any]:
    """Keys of section *name* that are fields of the dataclass *cls*."""
    raw = data.get(name) or {}
    return {k: v for k, v in raw.items() if k in cls.__dataclass_fields__}


def _dict_to_config(data: dict[str, Any]) -> DStatProbeConfig:
    """Convert a raw dictionary to a DStatProbeConfig dataclass."""
    probe_data = _section(data, "probe", ProbeConfig)
    properties = probe_data.pop("custom_properties", None) or {}

    return DStatProbeConfig(
        log_level=str(data.get("log_level", "INFO")),
        probe=ProbeConfig(
            custom_properties={str(k): str(v) for k, v in properties.items() if v is not None},
            **probe_data,
        ),
        reporter=ReporterConfig(**_section(data, "reporter", ReporterConfig)),
    )


def _apply_env_overrides(cfg: DStatProbeConfig) -> DStatProbeConfig:
    """Let ``DSTAT_PROBE_*`` environment variables win over the file."""
    for env_key, prop in PROPERTY_ENV_VARS.items():
        if env_key in os.environ:
            cfg.probe.custom_properties[prop] = os.environ[env_key]

    interval = os.environ.get("DSTAT_PROBE_DRAIN_INTERVAL")
    if interval is not None:
        cfg.reporter.drain_interval_seconds = float(interval)

    level = os.environ.get("DSTAT_PROBE_LOG_LEVEL")
    if level is not None:
        cfg.log_level = level
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as fh:
        loaded = yaml.safe_load(fh)
    return loaded if isinstance(loaded, dict) else {}


def load_config(path: str | Path | None = None) -> DStatProbeConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``dstat_probe.yaml`` in the current directory if *path* is None.
    Raises :class:`yaml.YAMLError` if the file is not valid YAML.
    """
    data = _read_yaml(Path(path) if path is not None else Path(DEFAULT_CONFIG_FILE))
    return _apply_env_overrides(_dict_to_config(data))
