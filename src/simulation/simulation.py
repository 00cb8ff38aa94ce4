from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from dispatch import DispatchError, PickupRequest, Pipeline, SystemState, get_pipeline, initialize

from .config import SimulationConfig
from .generator import RequestGenerator

logger = logging.getLogger(__name__)


@dataclass
class MetricsSnapshot:
    time_step: int
    requested: int
    delivered: int
    pending: int
    riding: int
    average_pending: float
    pending_p95: float


class MetricsTracker:
    def __init__(self) -> None:
        self.requested: int = 0
        self.delivered: int = 0
        self.pending_counts: List[int] = []
        self.riding_counts: List[int] = []

    def record_tick(self, new_requests: int, delivered: int, state: SystemState) -> None:
        self.requested += new_requests
        self.delivered += delivered
        self.pending_counts.append(len(state.pending))
        self.riding_counts.append(state.riding_count)

    def _average(self, values: List[int]) -> float:
        if not values:
            return 0.0
        return sum(values) / len(values)

    def _percentile(self, values: List[int], percentile: float) -> float:
        if not values:
            return 0.0
        sorted_vals = sorted(values)
        k = (len(sorted_vals) - 1) * percentile
        f = math.floor(k)
        c = math.ceil(k)
        if f == c:
            return float(sorted_vals[int(k)])
        d0 = sorted_vals[int(f)] * (c - k)
        d1 = sorted_vals[int(c)] * (k - f)
        return float(d0 + d1)

    def snapshot(self, time_step: int) -> MetricsSnapshot:
        return MetricsSnapshot(
            time_step=time_step,
            requested=self.requested,
            delivered=self.delivered,
            pending=self.pending_counts[-1] if self.pending_counts else 0,
            riding=self.riding_counts[-1] if self.riding_counts else 0,
            average_pending=self._average(self.pending_counts),
            pending_p95=self._percentile(self.pending_counts, 0.95),
        )


class Simulation:
    """Drives the dispatch core: feeds it arrivals each tick and keeps the latest snapshot."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        generator: Optional[RequestGenerator] = None,
        state: Optional[SystemState] = None,
    ) -> None:
        self.config = config or SimulationConfig()
        self.generator = generator or RequestGenerator(
            num_floors=self.config.num_floors,
            ground_probability=self.config.ground_arrival_probability,
            other_probability=self.config.other_arrival_probability,
            random_seed=self.config.random_seed,
        )
        self.pipeline: Pipeline = get_pipeline(self.config.pipeline)
        self.state: SystemState = state if state is not None else initialize(self.config.elevator_count)
        self.current_time: int = 0
        self.metrics = MetricsTracker()
        self.event_hooks: Dict[str, List[Callable[[object], None]]] = {}
        self.metrics_hook_interval = max(1, self.config.metrics_hook_interval)
        self._submitted: List[PickupRequest] = []

    def run(self, duration: int) -> SystemState:
        for _ in range(duration):
            self.step()
        return self.state

    def step(self, extra_requests: Iterable[PickupRequest] = ()) -> SystemState:
        arrivals = self._submitted + list(extra_requests) + self.generator.arrivals()
        if arrivals:
            self._emit("arrival", {"time": self.current_time, "requests": arrivals})

        before = self.state.request_count + len(arrivals)
        try:
            self.state = self.pipeline.tick(self.state, arrivals)
        except DispatchError:
            logger.exception("tick %d failed, state=%s", self.current_time, self.state)
            raise
        self._submitted = []
        delivered = before - self.state.request_count
        self.metrics.record_tick(len(arrivals), delivered, self.state)
        logger.debug("tick %d: %s", self.current_time, self.state)

        if delivered:
            self._emit("delivered", {"time": self.current_time, "count": delivered})
        if self.current_time % self.metrics_hook_interval == 0:
            self._emit_metrics()

        self.current_time += 1
        return self.state

    def submit(self, request: PickupRequest) -> None:
        """Queue an externally made request for the next tick."""
        self._submitted.append(request)

    def set_pipeline(self, name: str) -> None:
        self.pipeline = get_pipeline(name)
        self.config.pipeline = self.pipeline.name
        logger.info("switched pipeline to %s", self.pipeline.name)

    def on_event(self, event: str, callback: Callable[[object], None]) -> None:
        self.event_hooks.setdefault(event, []).append(callback)

    def snapshot(self) -> dict:
        return {
            "time": self.current_time,
            "pipeline": self.pipeline.name,
            "state": self.state.snapshot(),
        }

    def _emit_metrics(self) -> None:
        snapshot = self.metrics.snapshot(self.current_time)
        self._emit("metrics", {"metrics": snapshot, "state": self.state})

    def _emit(self, event: str, payload: object) -> None:
        for callback in self.event_hooks.get(event, []):
            callback(payload)
