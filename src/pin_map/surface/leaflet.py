from __future__ import annotations

import json
from html import escape
from typing import Any, Dict, List, Optional

from pin_map.config import Settings, settings as default_settings
from pin_map.presentation import Notice, RoutePanel
from pin_map.surface.base import LineLayer, MapSurface, MarkerLayer


def _script_json(value: Any) -> str:
    """JSON safe to inline in a <script> block (no raw <, > or &)."""
    return (
        json.dumps(value)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def _layer_payload(surface: MapSurface) -> Dict[str, List[Dict[str, Any]]]:
    markers: List[Dict[str, Any]] = []
    lines: List[Dict[str, Any]] = []
    for layer in surface.layers():
        if isinstance(layer, MarkerLayer):
            markers.append(
                {
                    "key": layer.key,
                    "owner": layer.owner,
                    "lat": layer.position.latitude,
                    "lon": layer.position.longitude,
                    "color": layer.icon.color,
                    "glyph": layer.icon.glyph,
                    "size": layer.icon.size_px,
                    "cls": layer.icon.css_class,
                    "title": layer.title,
                    "popup_title": escape(layer.title),
                    "popup": escape(layer.popup),
                }
            )
        elif isinstance(layer, LineLayer):
            lines.append(
                {
                    "key": layer.key,
                    "points": [[p.latitude, p.longitude] for p in layer.points],
                    "color": layer.color,
                    "weight": layer.weight,
                    "opacity": layer.opacity,
                    "dash": layer.dash_array,
                }
            )
    return {"markers": markers, "lines": lines}


def _panel_html(panel: Optional[RoutePanel], notice: Optional[Notice]) -> str:
    parts = []
    if panel is not None:
        parts.append(
            f"""<div class="panel route">
    <h3>Route to Destination</h3>
    <p class="dest">{escape(panel.destination_title)}</p>
    <div class="row"><span>Distance</span><b>{escape(panel.distance_label)}</b></div>
    <div class="row"><span>Est. Walking Time</span><b>{escape(panel.walking_label)}</b></div>
  </div>"""
        )
    if notice is not None:
        title = f"<h3>{escape(notice.title)}</h3>" if notice.title else ""
        parts.append(
            f'<div class="panel notice {escape(notice.kind)}">{title}<p>{escape(notice.message)}</p></div>'
        )
    return "\n  ".join(parts)


def render_html(
    surface: MapSurface,
    *,
    panel: Optional[RoutePanel] = None,
    notice: Optional[Notice] = None,
    cfg: Optional[Settings] = None,
    title: str = "Community Map",
) -> str:
    """Static Leaflet page showing the surface's layers, camera and side panel."""
    cfg = cfg or default_settings
    payload = _layer_payload(surface)
    cam = surface.camera
    if cam is not None:
        view = {"lat": cam.center.latitude, "lon": cam.center.longitude, "zoom": cam.zoom}
    else:
        view = {"lat": cfg.default_center_lat, "lon": cfg.default_center_lon, "zoom": cfg.default_zoom}

    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{escape(title)}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
  <style>
    body {{ margin: 0; font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; }}
    #map {{ height: 100vh; width: 100vw; }}
    .panel {{ position: absolute; top: 16px; left: 16px; z-index: 2000; max-width: 280px;
              background: #fff; border-radius: 8px; padding: 12px 16px;
              box-shadow: 0 4px 12px rgba(0,0,0,0.15); }}
    .panel.notice {{ top: auto; bottom: 16px; }}
    .panel.error {{ border-left: 4px solid #EF4444; }}
    .panel .row {{ display: flex; justify-content: space-between; margin-top: 8px; }}
    .pin {{ border-radius: 50%; display: flex; align-items: center; justify-content: center;
            color: #fff; border: 2px solid #fff; box-shadow: 0 2px 5px rgba(0,0,0,0.3); }}
  </style>
</head>
<body>
<div id="map"></div>
  {_panel_html(panel, notice)}
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
<script>
  const layers = {_script_json(payload)};
  const view = {_script_json(view)};

  const map = L.map('map').setView([view.lat, view.lon], view.zoom);

  L.tileLayer({json.dumps(cfg.tile_url)}, {{
    maxZoom: {int(cfg.tile_max_zoom)},
    attribution: {json.dumps(cfg.tile_attribution)}
  }}).addTo(map);

  layers.lines.forEach((ln) => {{
    L.polyline(ln.points, {{
      color: ln.color, weight: ln.weight, opacity: ln.opacity, dashArray: ln.dash
    }}).addTo(map);
  }});

  layers.markers.forEach((m) => {{
    const icon = L.divIcon({{
      html: `<div class="pin" style="background:${{m.color}};width:${{m.size}}px;height:${{m.size}}px">${{m.glyph}}</div>`,
      className: m.cls,
      iconSize: [m.size, m.size],
      iconAnchor: [m.size / 2, m.size],
    }});
    const mk = L.marker([m.lat, m.lon], {{ icon: icon, title: m.title }}).addTo(map);
    mk.bindPopup(`<b>${{m.popup_title}}</b><br/>${{m.popup}}`);
  }});
</script>
</body>
</html>
"""
