from __future__ import annotations

import logging
from typing import Dict, Iterable, Sequence, Tuple

from .interface import ElevatorState, PickupRequest, Stage, SystemState
from .stages import fetch_idle_stage, load_stage, move_stage, reprioritize_stage, unload_stage

logger = logging.getLogger(__name__)


def initialize(fleet_size: int) -> SystemState:
    """Build a fleet of idle elevators on the ground floor with nothing pending."""
    if fleet_size < 0:
        raise ValueError(f"Fleet size must not be negative, got {fleet_size}")
    return SystemState(pending=(), elevators=tuple(ElevatorState(i) for i in range(fleet_size)))


class Pipeline:
    """Ordered composition of stages applied once per tick."""

    def __init__(self, name: str, stages: Sequence[Stage]) -> None:
        self.name = name
        self.stages: Tuple[Stage, ...] = tuple(stages)

    def __call__(self, state: SystemState, new_requests: Iterable[PickupRequest] = ()) -> SystemState:
        return self.tick(state, new_requests)

    def tick(self, state: SystemState, new_requests: Iterable[PickupRequest] = ()) -> SystemState:
        current = state.with_requests(new_requests)
        for stage in self.stages:
            current = stage(current)
        if logger.isEnabledFor(logging.DEBUG):
            _log_transitions(state, current)
        return current

    def __repr__(self) -> str:
        names = ", ".join(getattr(s, "__name__", repr(s)) for s in self.stages)
        return f"Pipeline({self.name!r}, [{names}])"


def _log_transitions(before: SystemState, after: SystemState) -> None:
    for old, new in zip(before.elevators, after.elevators):
        if old != new:
            logger.debug("%s -> %s", old, new)


DEFAULT_STAGES: Tuple[Stage, ...] = (load_stage, fetch_idle_stage, move_stage, unload_stage)

PIPELINE_REGISTRY: Dict[str, Tuple[Stage, ...]] = {
    "fcfs": DEFAULT_STAGES,
    "nearest_first": (load_stage, reprioritize_stage, fetch_idle_stage, move_stage, unload_stage),
}


def get_pipeline(name: str) -> Pipeline:
    stages = PIPELINE_REGISTRY.get(name.lower())
    if stages is None:
        raise ValueError(f"Unknown pipeline '{name}'. Available: {', '.join(PIPELINE_REGISTRY)}")
    return Pipeline(name.lower(), stages)


default_pipeline = Pipeline("fcfs", DEFAULT_STAGES)


def tick(state: SystemState, new_requests: Iterable[PickupRequest] = ()) -> SystemState:
    """Advance ``state`` by one tick after queueing ``new_requests``."""
    return default_pipeline.tick(state, new_requests)
