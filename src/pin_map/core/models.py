from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinate(BaseModel):
    """WGS-84 position in decimal degrees. Immutable."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    def as_pair(self) -> tuple[float, float]:
        return self.latitude, self.longitude

    def __str__(self) -> str:
        return f"({self.latitude:.4f}, {self.longitude:.4f})"


class Pin(BaseModel):
    """A user-contributed point of interest, keyed by ``id``.

    Accepts both ``coordinate: {latitude, longitude}`` and the record shape
    used by the pin store, ``location: {lat, lng}``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    category: str = "other"
    coordinate: Coordinate
    description: str = ""

    # Anything else the store attaches (author, created_at, photo, ...)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_store_record(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        loc = data.pop("location", None) if "coordinate" not in data else None
        if isinstance(loc, dict):
            data["coordinate"] = {
                "latitude": loc.get("lat", loc.get("latitude")),
                "longitude": loc.get("lng", loc.get("lon", loc.get("longitude"))),
            }
        known = set(cls.model_fields)
        extra = {k: v for k, v in data.items() if k not in known}
        if extra:
            data = {k: v for k, v in data.items() if k in known}
            data["metadata"] = {**extra, **(data.get("metadata") or {})}
        return data


class RouteState(BaseModel):
    """The one live route: viewer position -> destination pin."""

    model_config = ConfigDict(frozen=True)

    origin: Coordinate
    destination: Coordinate
    destination_title: str
    destination_id: Optional[str] = None
    distance_km: float
    walking_minutes: int

    @property
    def distance_km_1dp(self) -> float:
        return float(f"{self.distance_km:.1f}")
