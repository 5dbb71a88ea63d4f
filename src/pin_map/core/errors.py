from __future__ import annotations

from enum import Enum
from typing import Optional


class EmptyInputError(ValueError):
    """A geometry helper was handed zero coordinates."""


class PositionError(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"


class GeolocationFailure(Exception):
    """A position fix could not be obtained. Expected and user-facing."""

    def __init__(self, error: PositionError, detail: Optional[str] = None):
        self.error = PositionError(error)
        self.detail = detail
        super().__init__(f"{self.error.value}: {detail}" if detail else self.error.value)


class StaleCallback(Exception):
    """A late callback no longer matches the controller's current request."""
