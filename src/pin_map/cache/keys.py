"""Redis key naming conventions for the pin-map cache layer."""
from __future__ import annotations

import hashlib

_PREFIX = "pm"


def ip_location(url: str) -> str:
    """Key for an IP-geolocation lookup (service-URL based)."""
    h = hashlib.sha256(url.encode()).hexdigest()[:16]
    return f"{_PREFIX}:geo:ip:{h}"
