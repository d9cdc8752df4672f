"""Country highlight projection from the located-country set."""
import logging
from typing import Iterable, Optional
from placemapper.core.config import LAND_COLOR, ACCENT_COLOR
from placemapper.core.map_surface import MapSurface
from placemapper.core.models import FillRule

logger = logging.getLogger(__name__)

# Base layer opacity while countries are highlighted
HIGHLIGHT_OPACITY = 0.4

UNAVAILABLE_REASON = "Country code data failed to load."


def project(
    enabled: bool,
    country_codes: Iterable[str],
    land_color: str = LAND_COLOR,
    accent_color: str = ACCENT_COLOR,
) -> FillRule:
    """
    Compute the fill rule for the country layer.

    Args:
        enabled: State of the highlight toggle
        country_codes: Alpha-3 codes of countries holding a placed location
        land_color: Uniform fill for countries
        accent_color: Fill for highlighted countries

    Returns:
        A highlighting rule at reduced opacity when enabled and codes exist,
        otherwise the plain land fill at full opacity
    """
    codes = frozenset(country_codes)
    if enabled and codes:
        return FillRule(
            base_color=land_color,
            highlight_color=accent_color,
            highlight_codes=codes,
            opacity=HIGHLIGHT_OPACITY,
        )
    return FillRule(base_color=land_color, highlight_color=accent_color, opacity=1.0)


class CountryHighlighter:
    """Pushes the projected fill rule to the map when it can take it."""

    def __init__(self, map_surface: MapSurface, registry, available: bool = True,
                 unavailable_reason: Optional[str] = None):
        self.map_surface = map_surface
        self.registry = registry
        self.available = available
        self.unavailable_reason = None if available else (unavailable_reason or UNAVAILABLE_REASON)
        self.enabled = False

    def set_enabled(self, enabled: bool) -> None:
        """Apply the toggle; ignored while the country lookup is unavailable."""
        self.enabled = bool(enabled) and self.available
        self.refresh()

    def refresh(self) -> bool:
        """
        Recompute and apply the fill rule.

        Returns:
            False when the map or its country polygons are not ready yet;
            the next registry change or toggle recomputes
        """
        if not self.map_surface.is_style_ready() or not self.map_surface.has_country_source():
            logger.debug("Map not ready, country fill recompute skipped")
            return False

        rule = project(self.enabled, self.registry.located_countries)
        self.map_surface.set_fill_rule(rule)
        return True
