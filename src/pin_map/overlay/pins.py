"""Keeps the surface's pin markers in step with a pin list."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from pin_map.core.categories import style_for
from pin_map.core.models import Pin
from pin_map.surface.base import PIN_OWNER, MapSurface, MarkerIcon, MarkerLayer

log = logging.getLogger(__name__)

RouteRequested = Callable[[Pin], None]


def marker_key(pin_id: str) -> str:
    return f"pin:{pin_id}"


class PinMarkerSet:
    """
    One marker per pin, keyed by pin id.

    ``sync`` is a diff-and-patch: markers whose pin disappeared are removed,
    new pins get a marker, and a pin whose record changed has its marker
    replaced. Unchanged pins are left alone, so repeated syncs with the same
    list touch nothing.
    """

    def __init__(self, surface: MapSurface, on_route_requested: Optional[RouteRequested] = None):
        self.surface = surface
        self.on_route_requested = on_route_requested
        self._shown: Dict[str, Pin] = {}

    @property
    def displayed_ids(self) -> List[str]:
        return list(self._shown)

    def __len__(self) -> int:
        return len(self._shown)

    def _marker_for(self, pin: Pin) -> MarkerLayer:
        style = style_for(pin.category)
        return MarkerLayer(
            key=marker_key(pin.id),
            owner=PIN_OWNER,
            position=pin.coordinate,
            icon=MarkerIcon(color=style.color, glyph=style.glyph, size_px=32),
            title=pin.title,
            popup=style.label,
            on_activate=lambda: self._activated(pin.id),
        )

    def _activated(self, pin_id: str) -> None:
        pin = self._shown.get(pin_id)
        if pin is None:
            log.debug("Activation for pin %s which is no longer displayed", pin_id)
            return
        if self.on_route_requested is not None:
            self.on_route_requested(pin)

    def sync(self, pins: Sequence[Pin]) -> None:
        if not self.surface.available:
            log.debug("Surface unavailable, skipping pin sync")
            return

        wanted: Dict[str, Pin] = {}
        for pin in pins:
            if pin.id in wanted:
                log.warning("Duplicate pin id %s in pin list, keeping the last one", pin.id)
            wanted[pin.id] = pin

        removed = added = replaced = 0

        for pin_id in [pid for pid in self._shown if pid not in wanted]:
            self.surface.remove_layer(marker_key(pin_id))
            del self._shown[pin_id]
            removed += 1

        for pin_id, pin in wanted.items():
            current = self._shown.get(pin_id)
            if current == pin and self.surface.has_layer(marker_key(pin_id)):
                continue
            if current is not None:
                self.surface.remove_layer(marker_key(pin_id))
                replaced += 1
            else:
                added += 1
            self.surface.add_layer(self._marker_for(pin))
            self._shown[pin_id] = pin

        log.debug(
            "Pin sync: %d shown (+%d, -%d, ~%d)", len(self._shown), added, removed, replaced
        )

    def clear(self) -> None:
        if not self.surface.available:
            log.debug("Surface unavailable, skipping pin clear")
            return
        for pin_id in list(self._shown):
            self.surface.remove_layer(marker_key(pin_id))
        if self._shown:
            log.debug("Cleared %d pin marker(s)", len(self._shown))
        self._shown.clear()
