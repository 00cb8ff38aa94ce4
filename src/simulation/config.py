from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional


@dataclass
class SimulationConfig:
    """Knobs for the simulation driver around the dispatch core."""

    num_floors: int = 10
    elevator_count: int = 2
    ground_arrival_probability: float = 0.25
    other_arrival_probability: float = 0.1
    tick_interval: float = 2.0
    random_seed: Optional[int] = None
    pipeline: str = "fcfs"
    metrics_hook_interval: int = 1

    def __post_init__(self) -> None:
        if self.num_floors < 2:
            raise ValueError("A building needs at least two floors")
        if self.elevator_count < 0:
            raise ValueError("Elevator count must not be negative")
        for name in ("ground_arrival_probability", "other_arrival_probability"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SimulationConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
