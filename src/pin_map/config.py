"""Centralized settings for the pin-map viewer."""
from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "PIN_MAP_"}

    # Raster tiles, opaque to the engine, only the HTML renderer reads these
    tile_url: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    tile_attribution: str = (
        '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
    )
    tile_max_zoom: int = 18

    # Fallback view when there are no pins (Manila)
    default_center_lat: float = 14.5995
    default_center_lon: float = 120.9842
    default_zoom: int = 13

    # Camera choreography
    browse_fit_padding_px: int = 50
    route_origin_zoom: int = 15
    route_fly_duration_s: float = 1.5
    route_settle_delay_s: float = 1.6   # wait for the origin fly-to before fitting both points
    route_fit_padding_px: int = 100
    route_fit_max_zoom: int = 15
    clear_fly_duration_s: float = 1.0

    # 4 km/h walking pace
    walking_minutes_per_km: float = 15.0

    # Redis: empty string means disabled (graceful fallback)
    redis_url: str = ""
    ttl_ip_location: int = 600          # 10 min, IP-derived position

    # External collaborators
    ip_geolocation_url: str = "https://ipapi.co/json/"
    http_user_agent: str = "pin-map/0.1 (community map viewer)"
    http_timeout_s: int = 10
    pins_url: str = ""
    pins_path: str = ""

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 8000


settings = Settings()
