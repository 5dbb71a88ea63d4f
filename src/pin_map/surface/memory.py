from __future__ import annotations

import heapq
import logging
import math
from typing import Any, Callable, Dict, List, Optional, Tuple

from pin_map.core.models import Coordinate
from pin_map.surface.base import Camera, Layer, MapSurface, MarkerLayer, Timer

log = logging.getLogger(__name__)

TILE_SIZE_PX = 256


def _mercator_y(lat: float) -> float:
    """Normalised Web Mercator y in [0, 1] (0 = north edge)."""
    lat = max(-85.05112878, min(85.05112878, lat))
    s = math.sin(math.radians(lat))
    return 0.5 - math.log((1 + s) / (1 - s)) / (4 * math.pi)


def fit_zoom(
    south_west: Coordinate,
    north_east: Coordinate,
    width_px: int,
    height_px: int,
    padding_px: int = 0,
    max_zoom: float = 18,
) -> int:
    """Largest integer zoom at which the box fits inside the padded viewport."""
    dx = abs(north_east.longitude - south_west.longitude) / 360.0
    dy = abs(_mercator_y(south_west.latitude) - _mercator_y(north_east.latitude))
    avail_w = max(1, width_px - 2 * padding_px)
    avail_h = max(1, height_px - 2 * padding_px)

    candidates = []
    if dx > 0:
        candidates.append(math.log2(avail_w / (dx * TILE_SIZE_PX)))
    if dy > 0:
        candidates.append(math.log2(avail_h / (dy * TILE_SIZE_PX)))
    if not candidates:
        return int(max_zoom)
    return int(max(0, min(max_zoom, math.floor(min(candidates)))))


class InMemorySurface(MapSurface):
    """
    Headless map surface with a virtual clock.

    Layers live in an insertion-ordered dict, camera moves are applied
    immediately and recorded in ``camera_log``, and deferred callbacks only
    fire when :meth:`advance` moves the clock. ``fly_to`` animations report
    completion through :meth:`when_camera_idle`, so the fallback delay is
    only used when no animation is running.
    """

    def __init__(self, width_px: int = 1024, height_px: int = 768, max_zoom: int = 18):
        self.width_px = width_px
        self.height_px = height_px
        self.max_zoom = max_zoom

        self.now = 0.0
        self.camera_log: List[Tuple[str, Camera]] = []

        self._layers: Dict[str, Layer] = {}
        self._camera: Optional[Camera] = None
        self._animating_until = 0.0
        self._timers: List[Tuple[float, int, Timer]] = []
        self._seq = 0
        self._alive = True

    @property
    def available(self) -> bool:
        return self._alive

    @property
    def camera(self) -> Optional[Camera]:
        return self._camera

    # ---- layers ----------------------------------------------------------

    def add_layer(self, layer: Layer) -> None:
        if not self._alive:
            log.debug("Surface destroyed, ignoring add_layer(%s)", layer.key)
            return
        if layer.key in self._layers:
            raise ValueError(f"Layer key already on surface: {layer.key}")
        self._layers[layer.key] = layer

    def remove_layer(self, key: str) -> bool:
        if not self._alive:
            log.debug("Surface destroyed, ignoring remove_layer(%s)", key)
            return False
        return self._layers.pop(key, None) is not None

    def layers(self, owner: Optional[str] = None) -> List[Layer]:
        if owner is None:
            return list(self._layers.values())
        return [layer for layer in self._layers.values() if layer.owner == owner]

    def has_layer(self, key: str) -> bool:
        return key in self._layers

    def activate(self, key: str) -> bool:
        """Simulate a click on a marker. Returns False if nothing handled it."""
        layer = self._layers.get(key)
        if not isinstance(layer, MarkerLayer) or layer.on_activate is None:
            return False
        layer.on_activate()
        return True

    # ---- camera ----------------------------------------------------------

    def _move(self, op: str, camera: Camera, duration_s: float = 0.0) -> None:
        self._camera = camera
        self._animating_until = self.now + max(0.0, duration_s)
        self.camera_log.append((op, camera))

    def set_view(self, center: Coordinate, zoom: float) -> None:
        if not self._alive:
            return
        self._move("set_view", Camera(center=center, zoom=zoom))

    def fly_to(self, center: Coordinate, zoom: float, duration_s: float = 1.0) -> None:
        if not self._alive:
            return
        self._move("fly_to", Camera(center=center, zoom=zoom), duration_s)

    def fit_bounds(
        self,
        south_west: Coordinate,
        north_east: Coordinate,
        padding_px: int = 0,
        max_zoom: Optional[float] = None,
    ) -> None:
        if not self._alive:
            return
        cap = self.max_zoom if max_zoom is None else min(self.max_zoom, max_zoom)
        zoom = fit_zoom(south_west, north_east, self.width_px, self.height_px, padding_px, cap)
        center = Coordinate(
            latitude=(south_west.latitude + north_east.latitude) / 2,
            longitude=(south_west.longitude + north_east.longitude) / 2,
        )
        self._move("fit_bounds", Camera(center=center, zoom=zoom))

    # ---- deferred callbacks ---------------------------------------------

    def call_later(self, delay_s: float, callback: Callable[[], Any]) -> Timer:
        self._seq += 1
        timer = Timer(due=self.now + max(0.0, delay_s), seq=self._seq, callback=callback)
        if self._alive:
            heapq.heappush(self._timers, (timer.due, timer.seq, timer))
        else:
            timer.cancel()
        return timer

    def when_camera_idle(self, callback: Callable[[], Any], fallback_delay_s: float) -> Timer:
        if self._animating_until > self.now:
            return self.call_later(self._animating_until - self.now, callback)
        return self.call_later(fallback_delay_s, callback)

    def pending_timers(self) -> int:
        return sum(1 for _, _, t in self._timers if not t.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in order. Returns how many fired."""
        target = self.now + max(0.0, seconds)
        fired = 0
        while self._timers and self._timers[0][0] <= target:
            due, _, timer = heapq.heappop(self._timers)
            self.now = max(self.now, due)
            if timer.cancelled:
                continue
            timer.cancelled = True
            timer.callback()
            fired += 1
        self.now = target
        return fired

    def destroy(self) -> None:
        if not self._alive:
            return
        for _, _, timer in self._timers:
            timer.cancel()
        self._timers.clear()
        self._layers.clear()
        self._alive = False
        log.info("Map surface destroyed")
