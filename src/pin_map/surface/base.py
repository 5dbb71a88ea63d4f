"""Ownership boundary around the imperative map canvas.

Every other component mutates the map through a :class:`MapSurface`: layers
are added/removed by key, the camera is moved with ``set_view`` /
``fly_to`` / ``fit_bounds``, and deferred work is scheduled with
``call_later`` on the same single execution context.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple, Union

from pin_map.core.models import Coordinate

PIN_OWNER = "pins"
ROUTE_OWNER = "route"


@dataclass(frozen=True)
class MarkerIcon:
    color: str
    glyph: str
    size_px: int = 32
    css_class: str = "custom-pin"


@dataclass(frozen=True)
class MarkerLayer:
    key: str
    owner: str
    position: Coordinate
    icon: MarkerIcon
    title: str = ""
    popup: str = ""
    on_activate: Optional[Callable[[], None]] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class LineLayer:
    key: str
    owner: str
    points: Tuple[Coordinate, ...]
    color: str = "#10B981"
    weight: int = 4
    opacity: float = 0.7
    dash_array: Optional[str] = "10, 10"


Layer = Union[MarkerLayer, LineLayer]


@dataclass(frozen=True)
class Camera:
    center: Coordinate
    zoom: float


@dataclass
class Timer:
    """Handle for a deferred callback; ``cancel()`` makes it a no-op."""

    due: float
    seq: int
    callback: Callable[[], Any] = field(repr=False)
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class MapSurface(ABC):
    """Map canvas: layers keyed by string, one camera, a deferred-callback queue."""

    @property
    @abstractmethod
    def available(self) -> bool:
        """False once the surface has been torn down."""

    @property
    @abstractmethod
    def camera(self) -> Optional[Camera]:
        raise NotImplementedError

    # ---- layers ----------------------------------------------------------

    @abstractmethod
    def add_layer(self, layer: Layer) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_layer(self, key: str) -> bool:
        """Remove a layer; returns False when the key was not present."""
        raise NotImplementedError

    @abstractmethod
    def layers(self, owner: Optional[str] = None) -> List[Layer]:
        raise NotImplementedError

    def has_layer(self, key: str) -> bool:
        return any(layer.key == key for layer in self.layers())

    # ---- camera ----------------------------------------------------------

    @abstractmethod
    def set_view(self, center: Coordinate, zoom: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def fly_to(self, center: Coordinate, zoom: float, duration_s: float = 1.0) -> None:
        raise NotImplementedError

    @abstractmethod
    def fit_bounds(
        self,
        south_west: Coordinate,
        north_east: Coordinate,
        padding_px: int = 0,
        max_zoom: Optional[float] = None,
    ) -> None:
        raise NotImplementedError

    # ---- deferred callbacks ---------------------------------------------

    @abstractmethod
    def call_later(self, delay_s: float, callback: Callable[[], Any]) -> Timer:
        raise NotImplementedError

    def when_camera_idle(self, callback: Callable[[], Any], fallback_delay_s: float) -> Timer:
        """Run *callback* once the current camera animation has finished.

        Surfaces without an animation-finished signal fall back to a fixed
        delay.
        """
        return self.call_later(fallback_delay_s, callback)

    @abstractmethod
    def destroy(self) -> None:
        raise NotImplementedError
