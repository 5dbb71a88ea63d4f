import pytest

from pin_map.core.models import Coordinate
from pin_map.overlay.route import DESTINATION_KEY, LINE_KEY, ORIGIN_KEY, RouteOverlay
from pin_map.surface.base import ROUTE_OWNER, LineLayer, MarkerLayer

from conftest import make_pin

ORIGIN = Coordinate(latitude=14.5995, longitude=120.9842)


@pytest.fixture
def overlay(surface):
    return RouteOverlay(surface, fly_duration_s=1.5, settle_delay_s=1.6)


def test_draw_adds_two_markers_and_a_line(surface, overlay, pins_abc):
    state = overlay.draw(ORIGIN, pins_abc[1])

    route_layers = surface.layers(ROUTE_OWNER)
    assert sorted(l.key for l in route_layers) == sorted([ORIGIN_KEY, DESTINATION_KEY, LINE_KEY])
    assert sum(isinstance(l, MarkerLayer) for l in route_layers) == 2
    assert sum(isinstance(l, LineLayer) for l in route_layers) == 1

    assert state.origin == ORIGIN
    assert state.destination == pins_abc[1].coordinate
    assert state.destination_title == "Makati Park"
    assert state.distance_km > 0
    assert overlay.state == state


def test_destination_marker_is_distinct_from_pins(surface, overlay, pins_abc):
    overlay.draw(ORIGIN, pins_abc[0])
    dest = next(l for l in surface.layers() if l.key == DESTINATION_KEY)
    origin = next(l for l in surface.layers() if l.key == ORIGIN_KEY)
    assert dest.icon.color == "#EF4444"
    assert dest.icon.size_px > 32
    assert dest.icon.glyph == "♻️"
    assert origin.icon.color == "#3B82F6"


def test_line_connects_origin_and_destination(surface, overlay, pins_abc):
    overlay.draw(ORIGIN, pins_abc[2])
    line = next(l for l in surface.layers() if l.key == LINE_KEY)
    assert line.points == (ORIGIN, pins_abc[2].coordinate)
    assert line.dash_array == "10, 10"


def test_known_distance_and_walking_time(overlay):
    los_banos = make_pin("LB", 14.1879, 121.1618)
    state = overlay.draw(ORIGIN, los_banos)
    assert state.distance_km == pytest.approx(49.6, abs=0.1)
    assert state.distance_km_1dp == 49.6
    assert state.walking_minutes == 744


def test_draw_then_clear_leaves_no_route_layers(surface, overlay, pins_abc):
    overlay.draw(ORIGIN, pins_abc[0])
    overlay.clear()
    assert surface.layers(ROUTE_OWNER) == []
    assert overlay.state is None
    overlay.clear()  # idempotent
    assert surface.layers(ROUTE_OWNER) == []


def test_redraw_replaces_previous_route(surface, overlay, pins_abc):
    overlay.draw(ORIGIN, pins_abc[0])
    overlay.draw(ORIGIN, pins_abc[2])
    assert len(surface.layers(ROUTE_OWNER)) == 3
    dest = next(l for l in surface.layers() if l.key == DESTINATION_KEY)
    assert dest.position == pins_abc[2].coordinate


def test_camera_flies_to_origin_then_fits_both(surface, overlay, pins_abc):
    overlay.draw(ORIGIN, pins_abc[2])

    op, cam = surface.camera_log[-1]
    assert op == "fly_to"
    assert cam.center == ORIGIN
    assert cam.zoom == 15

    surface.advance(1.4)
    assert surface.camera_log[-1][0] == "fly_to"

    surface.advance(0.2)
    op, cam = surface.camera_log[-1]
    assert op == "fit_bounds"
    assert cam.zoom <= 15
    mid_lat = (ORIGIN.latitude + pins_abc[2].coordinate.latitude) / 2
    assert cam.center.latitude == pytest.approx(mid_lat)


def test_deferred_fit_is_dropped_after_clear(surface, overlay, pins_abc):
    overlay.draw(ORIGIN, pins_abc[2])
    overlay.clear()
    surface.advance(5)
    assert [op for op, _ in surface.camera_log] == ["fly_to"]
    assert surface.layers(ROUTE_OWNER) == []


def test_deferred_fit_from_superseded_route_is_dropped(surface, overlay, pins_abc):
    overlay.draw(ORIGIN, pins_abc[0])
    surface.advance(0.5)
    overlay.draw(ORIGIN, pins_abc[2])
    surface.advance(5)

    fits = [cam for op, cam in surface.camera_log if op == "fit_bounds"]
    assert len(fits) == 1
    mid_lat = (ORIGIN.latitude + pins_abc[2].coordinate.latitude) / 2
    assert fits[0].center.latitude == pytest.approx(mid_lat)


def test_stale_callback_guard_without_timer_cancel(surface, overlay, pins_abc):
    overlay.draw(ORIGIN, pins_abc[0])
    timer = overlay._pending
    overlay.clear()
    # even if the host fires the callback anyway, nothing is redrawn
    timer.callback()
    assert surface.layers(ROUTE_OWNER) == []
    assert [op for op, _ in surface.camera_log] == ["fly_to"]


def test_fallback_delay_used_without_running_animation(surface, pins_abc):
    overlay = RouteOverlay(surface, fly_duration_s=0.0, settle_delay_s=1.6)
    overlay.draw(ORIGIN, pins_abc[0])
    surface.advance(1.5)
    assert surface.camera_log[-1][0] == "fly_to"
    surface.advance(0.2)
    assert surface.camera_log[-1][0] == "fit_bounds"


def test_draw_on_destroyed_surface_still_computes(surface, overlay, pins_abc):
    surface.destroy()
    state = overlay.draw(ORIGIN, pins_abc[0])
    assert state.distance_km > 0
    assert surface.layers() == []
