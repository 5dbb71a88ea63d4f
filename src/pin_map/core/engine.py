from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pin_map.config import Settings, settings as default_settings
from pin_map.core.controller import ModeController
from pin_map.core.models import Coordinate
from pin_map.overlay.pins import PinMarkerSet
from pin_map.overlay.route import RouteOverlay
from pin_map.providers.base import GeolocationProvider
from pin_map.surface.base import MapSurface
from pin_map.surface.memory import InMemorySurface


@dataclass
class MapViewer:
    """Everything one map view owns, wired together."""

    surface: MapSurface
    pins: PinMarkerSet
    route: RouteOverlay
    controller: ModeController
    geolocation: GeolocationProvider


def build_viewer(
    geolocation: GeolocationProvider,
    surface: Optional[MapSurface] = None,
    cfg: Optional[Settings] = None,
) -> MapViewer:
    cfg = cfg or default_settings
    if surface is None:
        surface = InMemorySurface(max_zoom=cfg.tile_max_zoom)

    pins = PinMarkerSet(surface)
    route = RouteOverlay(
        surface,
        origin_zoom=cfg.route_origin_zoom,
        fly_duration_s=cfg.route_fly_duration_s,
        settle_delay_s=cfg.route_settle_delay_s,
        fit_padding_px=cfg.route_fit_padding_px,
        fit_max_zoom=cfg.route_fit_max_zoom,
        minutes_per_km=cfg.walking_minutes_per_km,
    )
    controller = ModeController(
        surface,
        pins,
        route,
        geolocation,
        default_center=Coordinate(
            latitude=cfg.default_center_lat, longitude=cfg.default_center_lon
        ),
        default_zoom=cfg.default_zoom,
        browse_fit_padding_px=cfg.browse_fit_padding_px,
        clear_fly_duration_s=cfg.clear_fly_duration_s,
    )
    return MapViewer(
        surface=surface, pins=pins, route=route, controller=controller, geolocation=geolocation
    )
