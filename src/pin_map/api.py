"""FastAPI presentation adapter around one map viewer.

The browser (or any client) pushes pin lists, forwards marker clicks and
answers position requests; the engine's state is read back from ``/state``
and rendered as a Leaflet page from ``/map``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from pin_map.config import settings
from pin_map.core.controller import ModeKind
from pin_map.core.engine import MapViewer, build_viewer
from pin_map.core.errors import PositionError
from pin_map.core.models import Coordinate, Pin
from pin_map.overlay.pins import marker_key
from pin_map.overlay.route import ROUTE_KEYS
from pin_map.presentation import GUEST_ROUTE_MESSAGE, Notice, PanelState, RoutePanel
from pin_map.providers.base import PinSource
from pin_map.providers.geolocation import DeferredGeolocationProvider
from pin_map.providers.http import HTTPClient
from pin_map.providers.pins import HTTPPinSource, JsonFilePinSource
from pin_map.surface.leaflet import render_html
from pin_map.surface.memory import InMemorySurface

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class PositionErrorIn(BaseModel):
    error: PositionError
    detail: Optional[str] = None


class AdvanceIn(BaseModel):
    seconds: float = Field(..., ge=0.0)


class CameraOut(BaseModel):
    latitude: float
    longitude: float
    zoom: float


class StateOut(BaseModel):
    mode: str
    status: str
    target_pin_id: Optional[str] = None
    route: Optional[RoutePanel] = None
    notice: Optional[Notice] = None
    displayed_pin_ids: List[str] = []
    route_layers: List[str] = []
    pending_position_requests: int = 0
    camera: Optional[CameraOut] = None


def _default_pin_source() -> Optional[PinSource]:
    if settings.pins_url:
        client = HTTPClient(user_agent=settings.http_user_agent, timeout_s=settings.http_timeout_s)
        return HTTPPinSource(settings.pins_url, client)
    if settings.pins_path:
        return JsonFilePinSource(settings.pins_path)
    return None


def create_app(
    viewer: Optional[MapViewer] = None,
    *,
    guest: bool = False,
    pin_source: Optional[PinSource] = None,
) -> FastAPI:
    if viewer is None:
        viewer = build_viewer(DeferredGeolocationProvider())
    if pin_source is None:
        pin_source = _default_pin_source()

    panel = PanelState(guest=guest)
    viewer.controller.subscribe(panel)

    app = FastAPI(title="Pin Map", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.viewer = viewer
    app.state.panel = panel

    def _require_live() -> None:
        if not viewer.surface.available:
            raise HTTPException(status_code=409, detail="Map surface has been torn down")

    def _deferred() -> DeferredGeolocationProvider:
        geo = viewer.geolocation
        if not isinstance(geo, DeferredGeolocationProvider):
            raise HTTPException(status_code=409, detail="Viewer does not take client position fixes")
        return geo

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------

    @app.get("/health")
    def health() -> Dict[str, Any]:
        redis_ok = False
        try:
            from pin_map.cache.redis_client import get_redis

            r = get_redis()
            if r is not None:
                r.ping()
                redis_ok = True
        except Exception as exc:
            log.warning("Redis health check failed: %s", exc)
        return {"status": "ok", "redis": redis_ok, "surface": viewer.surface.available}

    @app.get("/state", response_model=StateOut)
    def state() -> StateOut:
        mode = viewer.controller.mode
        cam = viewer.surface.camera
        geo = viewer.geolocation
        return StateOut(
            mode=mode.kind.value,
            status=panel.status,
            target_pin_id=mode.target.id if mode.target is not None else None,
            route=panel.panel,
            notice=panel.notice,
            displayed_pin_ids=viewer.pins.displayed_ids,
            route_layers=[k for k in ROUTE_KEYS if viewer.surface.has_layer(k)],
            pending_position_requests=(
                geo.pending if isinstance(geo, DeferredGeolocationProvider) else 0
            ),
            camera=(
                CameraOut(latitude=cam.center.latitude, longitude=cam.center.longitude, zoom=cam.zoom)
                if cam is not None
                else None
            ),
        )

    @app.put("/pins", response_model=StateOut)
    def put_pins(pins: List[Pin]) -> StateOut:
        _require_live()
        viewer.controller.supply_pins(pins)
        return state()

    @app.post("/pins/refresh", response_model=StateOut)
    def refresh_pins() -> StateOut:
        _require_live()
        if pin_source is None:
            raise HTTPException(status_code=404, detail="No pin source configured")
        try:
            pins = pin_source.fetch()
        except Exception as e:
            log.warning("Pin refresh failed: %s", e)
            raise HTTPException(status_code=502, detail=f"Pin source failed: {e}")
        viewer.controller.supply_pins(pins)
        return state()

    @app.post("/pins/{pin_id}/route", response_model=StateOut)
    def request_route(pin_id: str) -> StateOut:
        _require_live()
        if guest:
            raise HTTPException(status_code=403, detail=GUEST_ROUTE_MESSAGE)
        pin = viewer.controller.find_pin(pin_id)
        if pin is None:
            raise HTTPException(status_code=404, detail=f"Unknown pin: {pin_id}")

        surface = viewer.surface
        if not (isinstance(surface, InMemorySurface) and surface.activate(marker_key(pin_id))):
            viewer.controller.request_route(pin)
        return state()

    @app.post("/position", response_model=StateOut)
    def post_position(coord: Coordinate) -> StateOut:
        _require_live()
        answered = _deferred().resolve(coord)
        log.info("Client position %s answered %d request(s)", coord, answered)
        return state()

    @app.post("/position/error", response_model=StateOut)
    def post_position_error(body: PositionErrorIn) -> StateOut:
        _require_live()
        answered = _deferred().fail(body.error, body.detail)
        log.info("Client position error %s answered %d request(s)", body.error.value, answered)
        return state()

    @app.delete("/route", response_model=StateOut)
    def clear_route() -> StateOut:
        _require_live()
        viewer.controller.clear_route()
        return state()

    @app.post("/clock/advance", response_model=StateOut)
    def advance_clock(body: AdvanceIn) -> StateOut:
        surface = viewer.surface
        if not isinstance(surface, InMemorySurface):
            raise HTTPException(status_code=409, detail="Surface has no virtual clock")
        surface.advance(body.seconds)
        return state()

    @app.get("/map", response_class=HTMLResponse)
    def map_page() -> str:
        title = "Community Map"
        if viewer.controller.mode.kind is ModeKind.ROUTE_ACTIVE:
            title = f"Community Map: {panel.status}"
        return render_html(viewer.surface, panel=panel.panel, notice=panel.notice, title=title)

    return app


app = create_app()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [pin_map] %(levelname)s %(message)s")
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
