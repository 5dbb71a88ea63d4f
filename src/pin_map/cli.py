from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from pin_map.config import settings
from pin_map.core.categories import filter_pins, style_for
from pin_map.core.controller import ModeKind
from pin_map.core.engine import build_viewer
from pin_map.core.models import Coordinate
from pin_map.overlay.pins import marker_key
from pin_map.presentation import PanelState
from pin_map.providers.base import GeolocationProvider
from pin_map.providers.geolocation import (
    FixedPositionProvider,
    IPGeolocationProvider,
    UnsupportedGeolocationProvider,
)
from pin_map.providers.http import HTTPClient
from pin_map.providers.pins import JsonFilePinSource
from pin_map.surface.leaflet import render_html
from pin_map.surface.memory import InMemorySurface


def _parse_latlon(text: str) -> Coordinate:
    try:
        lat_s, lon_s = text.split(",", 1)
        return Coordinate(latitude=float(lat_s), longitude=float(lon_s))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected LAT,LON within range, got {text!r}") from e


def _geolocation(args: argparse.Namespace) -> GeolocationProvider:
    if args.unsupported:
        return UnsupportedGeolocationProvider()
    if args.at is not None:
        return FixedPositionProvider(args.at)
    client = HTTPClient(user_agent=settings.http_user_agent, timeout_s=settings.http_timeout_s)
    return IPGeolocationProvider(settings.ip_geolocation_url, client, ttl_s=settings.ttl_ip_location)


def main() -> None:
    ap = argparse.ArgumentParser(description="Plot community pins and route to one of them.")
    ap.add_argument("--pins", required=True, help="Path to a JSON pin list")
    ap.add_argument("--route", metavar="PIN_ID", help="Show the route to this pin")
    ap.add_argument("--at", type=_parse_latlon, metavar="LAT,LON", help="Your position (default: IP lookup)")
    ap.add_argument("--unsupported", action="store_true", help="Simulate a host without location services")
    ap.add_argument("--category", default="all", help="Only show this category")
    ap.add_argument("--search", default="", help="Only show pins whose title/description match")
    ap.add_argument("--out", default="map.html", help="Where to write the HTML map")
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s [pin_map] %(levelname)s %(message)s",
    )

    console = Console()
    surface = InMemorySurface(max_zoom=settings.tile_max_zoom)
    viewer = build_viewer(_geolocation(args), surface=surface)
    panel = PanelState()
    viewer.controller.subscribe(panel)

    pins = filter_pins(JsonFilePinSource(args.pins).fetch(), args.category, args.search)
    viewer.controller.supply_pins(pins)

    if args.route:
        if not surface.activate(marker_key(args.route)):
            raise SystemExit(f"No displayed pin with id {args.route!r}")
        # let the origin fly-to finish and the follow-up fit run
        surface.advance(settings.route_settle_delay_s + settings.route_fly_duration_s)

    table = Table(title=f"Pin Map: {panel.status}")
    table.add_column("Marker")
    table.add_column("Title")
    table.add_column("Kind")
    table.add_column("Lat")
    table.add_column("Lon")
    for layer in surface.layers():
        pos = getattr(layer, "position", None)
        if pos is None:
            continue
        kind = layer.owner
        if layer.owner == "pins":
            pin = viewer.controller.find_pin(layer.key.split(":", 1)[1])
            kind = style_for(pin.category).label if pin is not None else kind
        table.add_row(layer.key, layer.title, kind, f"{pos.latitude:.5f}", f"{pos.longitude:.5f}")
    console.print(table)

    if panel.panel is not None:
        console.print(
            f"[bold]{panel.panel.destination_title}[/bold]: "
            f"{panel.panel.distance_label}, ~{panel.panel.walking_label} walk"
        )
    if panel.notice is not None:
        style = "red" if panel.notice.kind == "error" else "yellow"
        console.print(f"[{style}]{panel.notice.message}[/{style}]")

    cam = surface.camera
    if cam is not None:
        console.print(f"Camera: {cam.center} @ z{cam.zoom}")

    out = Path(args.out)
    out.write_text(render_html(surface, panel=panel.panel, notice=panel.notice), encoding="utf-8")
    console.print(f"Wrote: {out.resolve()}")

    if viewer.controller.mode.kind is ModeKind.LOCATING:
        console.print("[yellow]Still waiting for a position fix.[/yellow]")


if __name__ == "__main__":
    main()
