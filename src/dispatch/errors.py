from __future__ import annotations


class DispatchError(Exception):
    """Base class for errors raised by the dispatch core."""


class SameFloorError(DispatchError, ValueError):
    """Raised when a direction is requested between two equal floors.

    Seeing this means a stage left a satisfied target in place before the
    move stage ran. The snapshot can no longer be trusted, so callers should
    treat it as fatal.
    """

    def __init__(self, floor: int) -> None:
        super().__init__(f"On the same floor: {floor}")
        self.floor = floor


class MalformedRequestError(DispatchError, ValueError):
    """Raised when a pickup request has identical origin and destination."""

    def __init__(self, origin: int, destination: int) -> None:
        super().__init__(f"Request origin {origin} equals destination {destination}")
        self.origin = origin
        self.destination = destination
