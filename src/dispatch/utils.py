from __future__ import annotations

from typing import Iterable, List, Tuple

from .interface import PickupRequest


def partition_by_origin(
    requests: Iterable[PickupRequest], floor: int
) -> Tuple[List[PickupRequest], List[PickupRequest]]:
    """Split requests into those waiting on ``floor`` and the rest, keeping order."""

    boarding: List[PickupRequest] = []
    remaining: List[PickupRequest] = []
    for request in requests:
        (boarding if request.origin == floor else remaining).append(request)
    return boarding, remaining


def sort_by_distance(requests: Iterable[PickupRequest], floor: int) -> List[PickupRequest]:
    """Sort riders by how far their destination is from ``floor``.

    The sort is stable, so riders at equal distance keep their load order.
    """

    return sorted(requests, key=lambda req: abs(req.destination - floor))
