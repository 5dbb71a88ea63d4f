"""Route overlay: origin marker, destination marker and the line between them."""
from __future__ import annotations

import logging
from typing import Optional

from pin_map.core.categories import style_for
from pin_map.core.geo import MINUTES_PER_KM, bounds_of, distance_km, walking_minutes
from pin_map.core.models import Coordinate, Pin, RouteState
from pin_map.surface.base import (
    ROUTE_OWNER,
    LineLayer,
    MapSurface,
    MarkerIcon,
    MarkerLayer,
    Timer,
)

log = logging.getLogger(__name__)

ORIGIN_KEY = "route:origin"
DESTINATION_KEY = "route:destination"
LINE_KEY = "route:line"
ROUTE_KEYS = (LINE_KEY, ORIGIN_KEY, DESTINATION_KEY)

ORIGIN_ICON = MarkerIcon(color="#3B82F6", glyph="🚶", size_px=36, css_class="user-location-marker")
DESTINATION_COLOR = "#EF4444"


class RouteOverlay:
    """
    Draws at most one route at a time and computes its distance/walking time.

    Camera choreography on ``draw``: fly to the origin first, then, once that
    move has settled, fit both endpoints. The second step is a deferred
    callback tagged with a generation number; ``clear`` (and every new
    ``draw``) bumps the generation so a late callback does nothing.
    """

    def __init__(
        self,
        surface: MapSurface,
        *,
        origin_zoom: float = 15,
        fly_duration_s: float = 1.5,
        settle_delay_s: float = 1.6,
        fit_padding_px: int = 100,
        fit_max_zoom: float = 15,
        minutes_per_km: float = MINUTES_PER_KM,
    ):
        self.surface = surface
        self.origin_zoom = origin_zoom
        self.fly_duration_s = fly_duration_s
        self.settle_delay_s = settle_delay_s
        self.fit_padding_px = fit_padding_px
        self.fit_max_zoom = fit_max_zoom
        self.minutes_per_km = minutes_per_km

        self._state: Optional[RouteState] = None
        self._generation = 0
        self._pending: Optional[Timer] = None

    @property
    def state(self) -> Optional[RouteState]:
        return self._state

    def draw(self, origin: Coordinate, destination: Pin) -> RouteState:
        self.clear()

        km = distance_km(origin, destination.coordinate)
        state = RouteState(
            origin=origin,
            destination=destination.coordinate,
            destination_title=destination.title,
            destination_id=destination.id,
            distance_km=km,
            walking_minutes=walking_minutes(km, self.minutes_per_km),
        )
        self._state = state

        if not self.surface.available:
            log.warning("Surface unavailable, route to %s computed but not drawn", destination.id)
            return state

        style = style_for(destination.category)
        self.surface.add_layer(
            LineLayer(key=LINE_KEY, owner=ROUTE_OWNER, points=(origin, destination.coordinate))
        )
        self.surface.add_layer(
            MarkerLayer(
                key=ORIGIN_KEY,
                owner=ROUTE_OWNER,
                position=origin,
                icon=ORIGIN_ICON,
                title="Your current location",
            )
        )
        self.surface.add_layer(
            MarkerLayer(
                key=DESTINATION_KEY,
                owner=ROUTE_OWNER,
                position=destination.coordinate,
                icon=MarkerIcon(
                    color=DESTINATION_COLOR,
                    glyph=style.glyph,
                    size_px=40,
                    css_class="destination-marker",
                ),
                title=destination.title,
                popup=f"{style.label} · Your destination",
            )
        )

        self.surface.fly_to(origin, self.origin_zoom, duration_s=self.fly_duration_s)
        generation = self._generation
        self._pending = self.surface.when_camera_idle(
            lambda: self._fit_both(generation), fallback_delay_s=self.settle_delay_s
        )

        log.info(
            "Route drawn to %s: %.1f km, ~%d min walk",
            destination.id,
            state.distance_km,
            state.walking_minutes,
        )
        return state

    def _fit_both(self, generation: int) -> None:
        self._pending = None
        if generation != self._generation or self._state is None:
            log.debug("Dropping camera fit for superseded route (gen %d)", generation)
            return
        if not self.surface.available:
            return
        south_west, north_east = bounds_of([self._state.origin, self._state.destination])
        self.surface.fit_bounds(
            south_west, north_east, padding_px=self.fit_padding_px, max_zoom=self.fit_max_zoom
        )

    def clear(self) -> None:
        self._generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._state = None

        if not self.surface.available:
            return
        removed = sum(1 for key in ROUTE_KEYS if self.surface.remove_layer(key))
        if removed:
            log.debug("Cleared route overlay (%d layer(s))", removed)
