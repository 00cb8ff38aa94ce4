"""Simulation driver around the dispatch core."""

from .config import SimulationConfig
from .generator import RequestGenerator
from .simulation import MetricsSnapshot, MetricsTracker, Simulation

__all__ = [
    "MetricsSnapshot",
    "MetricsTracker",
    "RequestGenerator",
    "Simulation",
    "SimulationConfig",
]
