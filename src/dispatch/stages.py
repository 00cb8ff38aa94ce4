"""Transition stages of a dispatch tick.

Every stage takes a :class:`SystemState` and returns a new one. None of them
mutate their input, so any earlier snapshot stays valid for readers.
"""
from __future__ import annotations

from dataclasses import replace
from typing import List

from .interface import GROUND_FLOOR, ElevatorState, SystemState
from .utils import partition_by_origin, sort_by_distance


def load_stage(state: SystemState) -> SystemState:
    """Board waiting riders onto elevators standing on their origin floor.

    Elevators are visited in fleet order and each one only sees what earlier
    elevators left behind, so a request is claimed at most once.
    """

    remaining = list(state.pending)
    loaded: List[ElevatorState] = []
    for elevator in state.elevators:
        boarding, remaining = partition_by_origin(remaining, elevator.floor)
        loaded.append(elevator.load(boarding) if boarding else elevator)
    return SystemState(pending=tuple(remaining), elevators=tuple(loaded))


def reprioritize_stage(state: SystemState) -> SystemState:
    """Serve the rider whose destination is closest first."""

    return replace(
        state,
        elevators=tuple(
            replace(e, riding=tuple(sort_by_distance(e.riding, e.floor))) if len(e.riding) > 1 else e
            for e in state.elevators
        ),
    )


def _idle_target(elevator: ElevatorState, state: SystemState) -> ElevatorState:
    if not elevator.is_idle:
        return elevator
    if state.pending:
        # Chase the oldest waiting request; loading happens once on its floor.
        return elevator.fetch(state.pending[0].origin)
    if elevator.floor > GROUND_FLOOR:
        # Park on the ground floor, where most calls are expected.
        return elevator.fetch(GROUND_FLOOR)
    return elevator


def _clear_reached_fetch(elevator: ElevatorState) -> ElevatorState:
    if elevator.fetch_target is not None and elevator.is_on_floor(elevator.fetch_target):
        return elevator.clear_fetch()
    return elevator


def fetch_idle_stage(state: SystemState) -> SystemState:
    """Give idle elevators a fetch target and drop targets already reached."""

    return replace(
        state,
        elevators=tuple(_clear_reached_fetch(_idle_target(e, state)) for e in state.elevators),
    )


def _advance(elevator: ElevatorState) -> ElevatorState:
    if elevator.is_fetching:
        return elevator.move(elevator.fetch_direction())
    if not elevator.is_idle:
        return elevator.move(elevator.riding_direction())
    return elevator


def move_stage(state: SystemState) -> SystemState:
    """Move every busy elevator one floor toward its fetch target or head rider."""

    return replace(state, elevators=tuple(_advance(e) for e in state.elevators))


def unload_stage(state: SystemState) -> SystemState:
    """Drop off every rider whose destination is the elevator's floor."""

    return replace(state, elevators=tuple(e.unload_at_floor() for e in state.elevators))
