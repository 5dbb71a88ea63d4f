from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List

from pin_map.core.errors import GeolocationFailure
from pin_map.core.models import Coordinate, Pin

OnPosition = Callable[[Coordinate], None]
OnPositionError = Callable[[GeolocationFailure], None]


class PinSource(ABC):
    """Supplies the current pin list (order irrelevant)."""

    @abstractmethod
    def fetch(self) -> List[Pin]:
        raise NotImplementedError


class GeolocationProvider(ABC):
    """Single-shot "get current position".

    Every request is answered by at most one of the callbacks, at most once,
    possibly synchronously and possibly never.
    """

    @abstractmethod
    def request_position(self, on_success: OnPosition, on_failure: OnPositionError) -> None:
        raise NotImplementedError
