"""Immutable-snapshot elevator dispatch core."""

from __future__ import annotations

from .errors import DispatchError, MalformedRequestError, SameFloorError
from .interface import GROUND_FLOOR, Direction, ElevatorState, PickupRequest, Stage, SystemState, direction
from .pipeline import PIPELINE_REGISTRY, Pipeline, default_pipeline, get_pipeline, initialize, tick
from .stages import fetch_idle_stage, load_stage, move_stage, reprioritize_stage, unload_stage

__all__ = [
    "GROUND_FLOOR",
    "PIPELINE_REGISTRY",
    "Direction",
    "DispatchError",
    "ElevatorState",
    "MalformedRequestError",
    "PickupRequest",
    "Pipeline",
    "SameFloorError",
    "Stage",
    "SystemState",
    "default_pipeline",
    "direction",
    "fetch_idle_stage",
    "get_pipeline",
    "initialize",
    "load_stage",
    "move_stage",
    "reprioritize_stage",
    "tick",
    "unload_stage",
]
