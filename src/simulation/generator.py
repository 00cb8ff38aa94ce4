from __future__ import annotations

import random
from typing import List, Optional

from dispatch import GROUND_FLOOR, PickupRequest


class RequestGenerator:
    """Random arrival source: one Bernoulli trial for the lobby, one for anywhere."""

    def __init__(
        self,
        num_floors: int,
        ground_probability: float = 0.25,
        other_probability: float = 0.1,
        random_seed: Optional[int] = None,
    ) -> None:
        self.num_floors = num_floors
        self.ground_probability = ground_probability
        self.other_probability = other_probability
        self.random = random.Random(random_seed)

    def bernoulli(self, p: float) -> bool:
        return self.random.random() < p

    def pickup(self, origin: Optional[int] = None) -> PickupRequest:
        if origin is None:
            origin = self.random.randrange(self.num_floors)
        destination = self.random.choice([f for f in range(self.num_floors) if f != origin])
        return PickupRequest.between(origin, destination)

    def arrivals(self) -> List[PickupRequest]:
        requests: List[PickupRequest] = []
        if self.bernoulli(self.ground_probability):
            requests.append(self.pickup(GROUND_FLOOR))
        if self.bernoulli(self.other_probability):
            requests.append(self.pickup())
        return requests
