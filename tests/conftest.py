from typing import List, Tuple

import pytest

from pin_map.config import Settings
from pin_map.core.engine import build_viewer
from pin_map.core.models import Coordinate, Pin
from pin_map.providers.base import GeolocationProvider
from pin_map.surface.memory import InMemorySurface

MANILA = Coordinate(latitude=14.5995, longitude=120.9842)


class ManualGeolocation(GeolocationProvider):
    """Keeps every request's callbacks so tests can answer them in any order."""

    def __init__(self):
        self.requests: List[Tuple] = []

    def request_position(self, on_success, on_failure):
        self.requests.append((on_success, on_failure))


def make_pin(pin_id, lat, lon, category="recycling", title=None, description=""):
    return Pin(
        id=pin_id,
        title=title or f"Pin {pin_id}",
        category=category,
        coordinate=Coordinate(latitude=lat, longitude=lon),
        description=description,
    )


@pytest.fixture
def pins_abc():
    return [
        make_pin("A", 14.6042, 120.9822, "recycling", "Quiapo Recycling Hub"),
        make_pin("B", 14.5547, 121.0244, "green_space", "Makati Park"),
        make_pin("C", 14.6760, 121.0437, "water", "UP Diliman Water Station"),
    ]


@pytest.fixture
def surface():
    return InMemorySurface()


@pytest.fixture
def geo():
    return ManualGeolocation()


@pytest.fixture
def cfg():
    return Settings()


@pytest.fixture
def viewer(surface, geo, cfg):
    return build_viewer(geo, surface=surface, cfg=cfg)
