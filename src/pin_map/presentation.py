"""Text and figures the presentation layer shows for each engine state."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from pin_map.core.controller import ControllerEvent, Mode, ModeKind
from pin_map.core.errors import GeolocationFailure, PositionError
from pin_map.core.models import RouteState

EMPTY_STATE_TITLE = "No Sustainability Points Yet"
EMPTY_STATE_BODY = "Be the first to add a recycling center, park, or eco-friendly location!"
EMPTY_STATE_BODY_GUEST = "Sign up to add the first recycling center, park, or eco-friendly location!"

UNSUPPORTED_MESSAGE = "Your browser doesn't support location services."
UNAVAILABLE_MESSAGE = "Unable to get your location. Please enable location services to see the route."
GUEST_ROUTE_MESSAGE = "Please sign up or log in to use the route feature!"


class RoutePanel(BaseModel):
    destination_title: str
    distance_km: float
    distance_label: str
    walking_minutes: int
    walking_label: str


class Notice(BaseModel):
    kind: str  # "empty" | "error"
    title: Optional[str] = None
    message: str


def route_panel(state: RouteState) -> RoutePanel:
    return RoutePanel(
        destination_title=state.destination_title,
        distance_km=state.distance_km_1dp,
        distance_label=f"{state.distance_km:.1f} km",
        walking_minutes=state.walking_minutes,
        walking_label=f"{state.walking_minutes} min",
    )


def failure_message(failure: GeolocationFailure) -> str:
    if failure.error is PositionError.UNSUPPORTED:
        return UNSUPPORTED_MESSAGE
    return UNAVAILABLE_MESSAGE


def empty_state(guest: bool = False) -> Notice:
    return Notice(
        kind="empty",
        title=EMPTY_STATE_TITLE,
        message=EMPTY_STATE_BODY_GUEST if guest else EMPTY_STATE_BODY,
    )


def mode_label(mode: Mode) -> str:
    if mode.kind is ModeKind.LOCATING and mode.target is not None:
        return f"Locating you for a route to {mode.target.title}…"
    if mode.kind is ModeKind.ROUTE_ACTIVE and mode.route is not None:
        return f"Route to {mode.route.destination_title}"
    return "Browsing"


class PanelState:
    """Folds controller events into what the side panel currently shows."""

    def __init__(self, guest: bool = False):
        self.guest = guest
        self.panel: Optional[RoutePanel] = None
        self.notice: Optional[Notice] = None
        self.status = "Browsing"

    def __call__(self, event: ControllerEvent) -> None:
        self.status = mode_label(event.mode)
        if event.kind == "mode":
            self.panel = route_panel(event.mode.route) if event.mode.route is not None else None
            self.notice = None
        elif event.kind == "empty":
            self.notice = empty_state(self.guest)
        elif event.kind == "pins" and self.notice is not None and self.notice.kind == "empty":
            self.notice = None
        elif event.kind == "position_failed" and event.failure is not None:
            self.notice = Notice(kind="error", message=failure_message(event.failure))
