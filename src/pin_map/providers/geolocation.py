"""Position-fix adapters.

- FixedPositionProvider: always answers with one coordinate (CLI, demos).
- UnsupportedGeolocationProvider: the host has no location capability.
- DeferredGeolocationProvider: requests wait until someone outside the
  engine (the browser, via the API) reports a fix or an error.
- IPGeolocationProvider: coarse position from an IP lookup service.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import requests
from requests.exceptions import ReadTimeout

from pin_map.cache.keys import ip_location
from pin_map.cache.redis_client import cache_get_json, cache_set_json
from pin_map.core.errors import GeolocationFailure, PositionError
from pin_map.core.models import Coordinate
from pin_map.providers.base import GeolocationProvider, OnPosition, OnPositionError
from pin_map.providers.http import HTTPClient

log = logging.getLogger(__name__)


class FixedPositionProvider(GeolocationProvider):
    def __init__(self, position: Coordinate):
        self.position = position

    def request_position(self, on_success: OnPosition, on_failure: OnPositionError) -> None:
        on_success(self.position)


class UnsupportedGeolocationProvider(GeolocationProvider):
    def request_position(self, on_success: OnPosition, on_failure: OnPositionError) -> None:
        on_failure(GeolocationFailure(PositionError.UNSUPPORTED, "no location capability"))


class DeferredGeolocationProvider(GeolocationProvider):
    """Holds the newest request until :meth:`resolve` or :meth:`fail` is called.

    A new request replaces the one still waiting, which is never answered.
    The held request is answered exactly once; if nobody answers it simply
    stays pending.
    """

    def __init__(self) -> None:
        self._pending: List[Tuple[OnPosition, OnPositionError]] = []

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_position(self, on_success: OnPosition, on_failure: OnPositionError) -> None:
        if self._pending:
            log.debug("Dropping %d superseded position request(s)", len(self._pending))
        self._pending = [(on_success, on_failure)]

    def _drain(self) -> List[Tuple[OnPosition, OnPositionError]]:
        pending, self._pending = self._pending, []
        return pending

    def resolve(self, position: Coordinate) -> int:
        pending = self._drain()
        for on_success, _ in pending:
            on_success(position)
        return len(pending)

    def fail(self, error: PositionError, detail: Optional[str] = None) -> int:
        pending = self._drain()
        for _, on_failure in pending:
            on_failure(GeolocationFailure(error, detail))
        return len(pending)


def _coordinate_from(payload: dict) -> Coordinate:
    lat = payload.get("latitude", payload.get("lat"))
    lon = payload.get("longitude", payload.get("lon"))
    if lat is None or lon is None:
        reason = payload.get("reason") or payload.get("message") or "no coordinates in response"
        raise GeolocationFailure(PositionError.UNAVAILABLE, str(reason))
    try:
        return Coordinate(latitude=float(lat), longitude=float(lon))
    except (TypeError, ValueError) as e:
        raise GeolocationFailure(PositionError.UNAVAILABLE, f"bad coordinates: {e}") from e


class IPGeolocationProvider(GeolocationProvider):
    def __init__(self, url: str, client: HTTPClient, ttl_s: int = 600):
        self.url = url
        self.client = client
        self.ttl_s = ttl_s

    def _lookup(self) -> Coordinate:
        key = ip_location(self.url)
        cached = cache_get_json(key)
        if isinstance(cached, dict):
            try:
                return Coordinate(**cached)
            except (TypeError, ValueError) as e:
                log.warning("Ignoring unusable cached position under %s: %s", key, e)

        try:
            payload = self.client.get_json(self.url)
        except ReadTimeout as e:
            raise GeolocationFailure(PositionError.TIMEOUT, str(e)) from e
        except (requests.RequestException, ValueError) as e:
            raise GeolocationFailure(PositionError.UNAVAILABLE, f"{type(e).__name__}: {e}") from e

        if not isinstance(payload, dict):
            raise GeolocationFailure(PositionError.UNAVAILABLE, "unexpected response shape")
        coord = _coordinate_from(payload)

        cache_set_json(key, coord.model_dump(), self.ttl_s)
        return coord

    def request_position(self, on_success: OnPosition, on_failure: OnPositionError) -> None:
        try:
            coord = self._lookup()
        except GeolocationFailure as failure:
            log.warning("IP geolocation failed: %s", failure)
            on_failure(failure)
            return
        log.info("IP geolocation resolved to %s", coord)
        on_success(coord)
