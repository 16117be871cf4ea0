"""Streaming dstat output collection."""

from .base import BaseProbe, Sample
from .buffer import SampleBuffer
from .dstat import DStatProbe, ProbeState

__all__ = ["BaseProbe", "DStatProbe", "ProbeState", "Sample", "SampleBuffer"]
