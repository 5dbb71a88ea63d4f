from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List

from pin_map.core.models import Pin
from pin_map.providers.base import PinSource
from pin_map.providers.http import HTTPClient

log = logging.getLogger(__name__)


def parse_pins(payload: Any) -> List[Pin]:
    """Accept either a bare list of pin records or ``{"pins": [...]}``."""
    if isinstance(payload, dict):
        payload = payload.get("pins", [])
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of pins, got {type(payload).__name__}")
    return [Pin.model_validate(rec) for rec in payload]


class JsonFilePinSource(PinSource):
    def __init__(self, path: Path | str):
        self.path = Path(path)

    def fetch(self) -> List[Pin]:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        pins = parse_pins(data)
        log.info("Loaded %d pin(s) from %s", len(pins), self.path)
        return pins


class HTTPPinSource(PinSource):
    def __init__(self, url: str, client: HTTPClient):
        self.url = url
        self.client = client

    def fetch(self) -> List[Pin]:
        pins = parse_pins(self.client.get_json(self.url))
        log.info("Fetched %d pin(s) from %s", len(pins), self.url)
        return pins
