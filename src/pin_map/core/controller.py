"""Browse / Locating / RouteActive state machine.

The controller is the only writer that decides who owns the surface's
marker layer: the pin marker set while browsing, the route overlay while
locating or showing a route. Position fixes are requested with a
monotonically increasing token; a callback whose token no longer matches
the current Locating mode is dropped.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from pin_map.core.errors import GeolocationFailure, PositionError, StaleCallback
from pin_map.core.geo import bounds_of
from pin_map.core.models import Coordinate, Pin, RouteState
from pin_map.overlay.pins import PinMarkerSet
from pin_map.overlay.route import RouteOverlay
from pin_map.providers.base import GeolocationProvider
from pin_map.surface.base import MapSurface

log = logging.getLogger(__name__)


class ModeKind(str, Enum):
    BROWSE = "browse"
    LOCATING = "locating"
    ROUTE_ACTIVE = "route_active"


@dataclass(frozen=True)
class Mode:
    kind: ModeKind
    target: Optional[Pin] = None
    route: Optional[RouteState] = None
    token: int = 0


BROWSE = Mode(ModeKind.BROWSE)


@dataclass(frozen=True)
class ControllerEvent:
    """What the presentation layer is told.

    kind is ``"mode"`` after every transition, ``"pins"`` when a new
    non-empty pin list was reconciled while browsing, ``"empty"`` when
    Browse shows no pins, ``"position_failed"`` when a fix could not be
    obtained (``failure`` is set).
    """

    kind: str
    mode: Mode
    failure: Optional[GeolocationFailure] = None


Listener = Callable[[ControllerEvent], None]


class ModeController:
    def __init__(
        self,
        surface: MapSurface,
        pins: PinMarkerSet,
        route: RouteOverlay,
        geolocation: GeolocationProvider,
        *,
        default_center: Coordinate,
        default_zoom: float = 13,
        browse_fit_padding_px: int = 50,
        clear_fly_duration_s: float = 1.0,
    ):
        self.surface = surface
        self.pins = pins
        self.route = route
        self.geolocation = geolocation
        self.default_center = default_center
        self.default_zoom = default_zoom
        self.browse_fit_padding_px = browse_fit_padding_px
        self.clear_fly_duration_s = clear_fly_duration_s

        self.pins.on_route_requested = self.request_route

        self._mode = BROWSE
        self._latest_pins: List[Pin] = []
        self._request_seq = 0
        self._listeners: List[Listener] = []

        if self.surface.available and self.surface.camera is None:
            self.surface.set_view(self.default_center, self.default_zoom)

    # ---- observation -----------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def latest_pins(self) -> List[Pin]:
        return list(self._latest_pins)

    def find_pin(self, pin_id: str) -> Optional[Pin]:
        for pin in self._latest_pins:
            if pin.id == pin_id:
                return pin
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, kind: str, failure: Optional[GeolocationFailure] = None) -> None:
        event = ControllerEvent(kind=kind, mode=self._mode, failure=failure)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.exception("Listener failed on %s event", kind)

    # ---- inputs ----------------------------------------------------------

    def supply_pins(self, pins: Sequence[Pin]) -> None:
        """Store the newest pin list; reconcile now only if browsing."""
        self._latest_pins = list(pins)
        if self._mode.kind is not ModeKind.BROWSE:
            log.debug(
                "Pin list (%d) stored, reconciliation deferred while %s",
                len(self._latest_pins),
                self._mode.kind.value,
            )
            return

        before = set(self.pins.displayed_ids)
        self.pins.sync(self._latest_pins)
        if set(self.pins.displayed_ids) != before:
            self._fit_all_pins()
        self._emit("pins" if self._latest_pins else "empty")

    def request_route(self, pin: Pin) -> None:
        """Browse/Locating/RouteActive -> Locating(pin). Supersedes any prior request."""
        if not self.surface.available:
            log.warning("Route to %s requested on a torn-down surface, ignoring", pin.id)
            return

        previous = self._mode
        self.route.clear()
        self.pins.clear()

        self._request_seq += 1
        token = self._request_seq
        self._mode = Mode(ModeKind.LOCATING, target=pin, token=token)
        if previous.kind is not ModeKind.BROWSE and previous.target is not None:
            log.info("Route to %s supersedes %s (request %d)", pin.id, previous.target.id, token)
        else:
            log.info("Locating viewer for route to %s (request %d)", pin.id, token)
        self._emit("mode")

        try:
            self.geolocation.request_position(
                lambda coord: self.position_resolved(token, coord),
                lambda failure: self.position_failed(token, failure),
            )
        except GeolocationFailure as failure:
            self.position_failed(token, failure)
        except Exception as exc:
            log.exception("Geolocation provider raised while locating for %s", pin.id)
            self.position_failed(
                token,
                GeolocationFailure(PositionError.UNAVAILABLE, f"{type(exc).__name__}: {exc}"),
            )

    def position_resolved(self, token: int, coord: Coordinate) -> None:
        """Locating(pin) -> RouteActive."""
        try:
            pin = self._check_token(token)
        except StaleCallback as exc:
            log.debug("Dropping position fix: %s", exc)
            return

        state = self.route.draw(coord, pin)
        self._mode = Mode(ModeKind.ROUTE_ACTIVE, target=pin, route=state, token=token)
        self._emit("mode")

    def position_failed(self, token: int, failure: GeolocationFailure) -> None:
        """Locating(pin) -> Browse, surfacing the failure. Never retried."""
        try:
            self._check_token(token)
        except StaleCallback as exc:
            log.debug("Dropping position failure: %s", exc)
            return

        log.warning("Position fix failed (%s), back to browsing", failure)
        self._enter_browse()
        self._emit("position_failed", failure=failure)

    def clear_route(self) -> None:
        """Locating/RouteActive -> Browse. A fix still in flight is discarded when it lands."""
        if self._mode.kind is ModeKind.BROWSE:
            log.debug("clear_route while browsing, nothing to do")
            return
        log.info("Clearing route (was %s)", self._mode.kind.value)
        self._enter_browse()

    def teardown(self) -> None:
        """Destroy the surface; every later input becomes a no-op."""
        self.route.clear()
        self.pins.clear()
        self._mode = BROWSE
        self.surface.destroy()

    # ---- internals -------------------------------------------------------

    def _check_token(self, token: int) -> Pin:
        mode = self._mode
        if mode.kind is not ModeKind.LOCATING or mode.token != token or mode.target is None:
            raise StaleCallback(
                f"request {token} is no longer current (mode={mode.kind.value}, token={mode.token})"
            )
        return mode.target

    def _enter_browse(self) -> None:
        self.route.clear()
        self._mode = BROWSE
        self.pins.sync(self._latest_pins)
        self._fly_to_first_pin()
        self._emit("mode")
        if not self._latest_pins:
            self._emit("empty")

    def _fit_all_pins(self) -> None:
        if not self.surface.available:
            return
        if not self._latest_pins:
            self.surface.set_view(self.default_center, self.default_zoom)
            return
        south_west, north_east = bounds_of(p.coordinate for p in self._latest_pins)
        self.surface.fit_bounds(south_west, north_east, padding_px=self.browse_fit_padding_px)

    def _fly_to_first_pin(self) -> None:
        if not self.surface.available:
            return
        center = self._latest_pins[0].coordinate if self._latest_pins else self.default_center
        self.surface.fly_to(center, self.default_zoom, duration_s=self.clear_fly_duration_s)
