from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Protocol, Tuple

from .errors import MalformedRequestError, SameFloorError

GROUND_FLOOR = 0


class Direction(Enum):
    UP = 1
    DOWN = -1

    def __str__(self) -> str:
        return self.name.capitalize()


def direction(current: int, target: int) -> Direction:
    """Return the direction to travel from ``current`` to reach ``target``."""
    delta = target - current
    if delta > 0:
        return Direction.UP
    if delta < 0:
        return Direction.DOWN
    raise SameFloorError(current)


@dataclass(frozen=True)
class PickupRequest:
    """A rider waiting on ``origin`` who wants to go to ``destination``.

    ``direction`` is what the rider asked for at the hall button and is
    kept as given, not re-derived from the floors.
    """

    origin: int
    direction: Direction
    destination: int

    def __post_init__(self) -> None:
        if self.origin == self.destination:
            raise MalformedRequestError(self.origin, self.destination)

    @classmethod
    def between(cls, origin: int, destination: int) -> "PickupRequest":
        heading = Direction.UP if destination > origin else Direction.DOWN
        return cls(origin, heading, destination)

    def __str__(self) -> str:
        return f"Request on floor {self.origin} in direction {self.direction} to floor {self.destination}"

    def to_dict(self) -> dict:
        return {
            "origin": self.origin,
            "direction": self.direction.name.lower(),
            "destination": self.destination,
        }


@dataclass(frozen=True)
class ElevatorState:
    """Snapshot of one car: where it is, who rides it and where it fetches."""

    elevator_id: int
    floor: int = GROUND_FLOOR
    riding: Tuple[PickupRequest, ...] = ()
    fetch_target: Optional[int] = None

    def __post_init__(self) -> None:
        # Accept any sequence from callers but store an immutable one.
        if not isinstance(self.riding, tuple):
            object.__setattr__(self, "riding", tuple(self.riding))

    @property
    def is_idle(self) -> bool:
        return not self.riding and self.fetch_target is None

    @property
    def is_fetching(self) -> bool:
        return self.fetch_target is not None

    def is_on_floor(self, floor: int) -> bool:
        return self.floor == floor

    def riding_direction(self) -> Direction:
        return direction(self.floor, self.riding[0].destination)

    def fetch_direction(self) -> Direction:
        if self.fetch_target is None:
            raise ValueError(f"Elevator {self.elevator_id} has no fetch target")
        return direction(self.floor, self.fetch_target)

    def load(self, requests: Iterable[PickupRequest]) -> "ElevatorState":
        return replace(self, riding=self.riding + tuple(requests))

    def unload_at_floor(self) -> "ElevatorState":
        remaining = tuple(r for r in self.riding if r.destination != self.floor)
        if len(remaining) == len(self.riding):
            return self
        return replace(self, riding=remaining)

    def fetch(self, floor: int) -> "ElevatorState":
        return replace(self, fetch_target=floor)

    def clear_fetch(self) -> "ElevatorState":
        return replace(self, fetch_target=None)

    def move(self, heading: Direction) -> "ElevatorState":
        return replace(self, floor=self.floor + heading.value)

    def __str__(self) -> str:
        riding = ", ".join(str(r) for r in self.riding)
        return f"Elevator {self.elevator_id} on {self.floor} with [{riding}]"

    def to_dict(self) -> dict:
        return {
            "id": self.elevator_id,
            "floor": self.floor,
            "riding": [r.to_dict() for r in self.riding],
            "fetch_target": self.fetch_target,
            "idle": self.is_idle,
        }


@dataclass(frozen=True)
class SystemState:
    """Whole-fleet snapshot for a single tick."""

    pending: Tuple[PickupRequest, ...] = ()
    elevators: Tuple[ElevatorState, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.pending, tuple):
            object.__setattr__(self, "pending", tuple(self.pending))
        if not isinstance(self.elevators, tuple):
            object.__setattr__(self, "elevators", tuple(self.elevators))

    @property
    def status(self) -> Tuple[ElevatorState, ...]:
        return self.elevators

    @property
    def riding_count(self) -> int:
        return sum(len(e.riding) for e in self.elevators)

    @property
    def request_count(self) -> int:
        """Requests held anywhere in the system, waiting or aboard."""
        return len(self.pending) + self.riding_count

    def elevator(self, elevator_id: int) -> Optional[ElevatorState]:
        for elevator in self.elevators:
            if elevator.elevator_id == elevator_id:
                return elevator
        return None

    def with_requests(self, requests: Iterable[PickupRequest]) -> "SystemState":
        new = tuple(requests)
        if not new:
            return self
        return replace(self, pending=self.pending + new)

    def __str__(self) -> str:
        elevators = ", ".join(str(e) for e in self.elevators)
        pending = ", ".join(str(r) for r in self.pending)
        return f"Elevators: [{elevators}], Requests: [{pending}]"

    def snapshot(self) -> dict:
        return {
            "pending": [r.to_dict() for r in self.pending],
            "elevators": [e.to_dict() for e in self.elevators],
        }


class Stage(Protocol):
    """One transition of the tick pipeline: a pure snapshot-to-snapshot function."""

    def __call__(self, state: SystemState) -> SystemState:
        ...
