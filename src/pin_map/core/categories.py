"""Category styling and pin filtering shared by the map layers and the panel."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from pin_map.core.models import Pin


@dataclass(frozen=True)
class CategoryStyle:
    color: str
    glyph: str
    label: str


CATEGORY_STYLES: Dict[str, CategoryStyle] = {
    "recycling": CategoryStyle("#10B981", "♻️", "Recycling Center"),
    "green_space": CategoryStyle("#059669", "🌳", "Green Space/Park"),
    "transport": CategoryStyle("#3B82F6", "🚲", "Sustainable Transport"),
    "water": CategoryStyle("#06B6D4", "💧", "Water Station"),
    "cleanup": CategoryStyle("#F97316", "🧹", "Clean-up Area"),
}

OTHER_STYLE = CategoryStyle("#6B7280", "📍", "Other")


def style_for(category: str) -> CategoryStyle:
    return CATEGORY_STYLES.get(category, OTHER_STYLE)


def filter_pins(pins: Iterable[Pin], category: str = "all", search: str = "") -> List[Pin]:
    """Category + free-text filter applied by the presentation layer.

    ``category="all"`` keeps every category; *search* is a case-insensitive
    substring match against title and description.
    """
    needle = search.strip().lower()
    out: List[Pin] = []
    for pin in pins:
        if category != "all" and pin.category != category:
            continue
        if needle and needle not in pin.title.lower() and needle not in pin.description.lower():
            continue
        out.append(pin)
    return out
