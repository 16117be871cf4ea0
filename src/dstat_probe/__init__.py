"""dstat_probe – collects system metrics from the Linux ``dstat`` tool."""

__version__ = "0.1.0"
