from pin_map.overlay.pins import PinMarkerSet, marker_key
from pin_map.surface.base import PIN_OWNER

from conftest import make_pin


def _shown_keys(surface):
    return sorted(layer.key for layer in surface.layers(PIN_OWNER))


def test_sync_empty_twice_shows_nothing(surface):
    markers = PinMarkerSet(surface)
    markers.sync([])
    markers.sync([])
    assert len(markers) == 0
    assert surface.layers(PIN_OWNER) == []


def test_sync_is_idempotent(surface, pins_abc):
    markers = PinMarkerSet(surface)
    markers.sync(pins_abc)
    first = _shown_keys(surface)
    layers_before = {layer.key: layer for layer in surface.layers()}

    markers.sync(pins_abc)
    assert _shown_keys(surface) == first == ["pin:A", "pin:B", "pin:C"]
    # unchanged pins keep their marker objects (no remove/re-add)
    for layer in surface.layers():
        assert layer is layers_before[layer.key]


def test_sync_diffs_by_id_not_position(surface, pins_abc):
    markers = PinMarkerSet(surface)
    markers.sync(pins_abc)
    a, b, c = pins_abc

    d = make_pin("D", 14.58, 121.0, "cleanup")
    markers.sync([d, c, a])

    assert _shown_keys(surface) == ["pin:A", "pin:C", "pin:D"]
    assert sorted(markers.displayed_ids) == ["A", "C", "D"]


def test_moved_pin_replaces_its_marker(surface, pins_abc):
    markers = PinMarkerSet(surface)
    markers.sync(pins_abc)

    moved = make_pin("B", 14.56, 121.03, "green_space", "Makati Park")
    markers.sync([pins_abc[0], moved, pins_abc[2]])

    layer = next(l for l in surface.layers() if l.key == marker_key("B"))
    assert layer.position == moved.coordinate
    assert len(surface.layers(PIN_OWNER)) == 3


def test_duplicate_ids_produce_one_marker(surface):
    markers = PinMarkerSet(surface)
    markers.sync([make_pin("X", 14.0, 121.0), make_pin("X", 14.1, 121.1)])
    assert _shown_keys(surface) == ["pin:X"]


def test_clear_removes_every_marker(surface, pins_abc):
    markers = PinMarkerSet(surface)
    markers.sync(pins_abc)
    markers.clear()
    assert surface.layers(PIN_OWNER) == []
    assert len(markers) == 0
    markers.clear()  # idempotent


def test_marker_uses_category_style(surface, pins_abc):
    markers = PinMarkerSet(surface)
    markers.sync(pins_abc)
    layer = next(l for l in surface.layers() if l.key == "pin:C")
    assert layer.icon.color == "#06B6D4"
    assert layer.icon.glyph == "💧"
    assert layer.title == "UP Diliman Water Station"


def test_unknown_category_falls_back_to_other(surface):
    markers = PinMarkerSet(surface)
    markers.sync([make_pin("Z", 14.0, 121.0, "bakery")])
    assert surface.layers()[0].icon.color == "#6B7280"


def test_activation_emits_route_request(surface, pins_abc):
    requested = []
    markers = PinMarkerSet(surface, on_route_requested=requested.append)
    markers.sync(pins_abc)

    assert surface.activate("pin:B") is True
    assert [p.id for p in requested] == ["B"]


def test_activation_uses_latest_record(surface, pins_abc):
    requested = []
    markers = PinMarkerSet(surface, on_route_requested=requested.append)
    markers.sync(pins_abc)
    renamed = make_pin("A", 14.6042, 120.9822, "recycling", "Renamed Hub")
    markers.sync([renamed, pins_abc[1], pins_abc[2]])

    surface.activate("pin:A")
    assert requested[-1].title == "Renamed Hub"


def test_sync_and_clear_are_noops_on_destroyed_surface(surface, pins_abc):
    markers = PinMarkerSet(surface)
    markers.sync(pins_abc[:1])
    surface.destroy()

    markers.sync(pins_abc)
    markers.clear()
    assert surface.layers() == []
    assert markers.displayed_ids == ["A"]
