"""Map collaborator: marker, label and country-fill state rendered with pydeck."""
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional, Tuple

import pydeck as pdk
import requests

from placemapper.core.config import (
    COUNTRIES_GEOJSON_URL,
    LAND_COLOR,
    ACCENT_COLOR,
    BORDER_COLOR,
)
from placemapper.core.errors import NetworkError
from placemapper.core.models import FillRule

logger = logging.getLogger(__name__)

Coordinates = Tuple[float, float]

INITIAL_VIEW = {"longitude": 0.0, "latitude": 20.0, "zoom": 1.5}


class MapSurface(ABC):
    """Operations the registry and highlighter need from a map."""

    @abstractmethod
    def add_marker(self, coords: Coordinates) -> int:
        pass

    @abstractmethod
    def add_label(self, coords: Coordinates, text: str) -> int:
        pass

    @abstractmethod
    def remove_handle(self, handle: int) -> None:
        pass

    @abstractmethod
    def update_label_text(self, handle: int, text: str) -> None:
        pass

    @abstractmethod
    def fly_to(self, coords: Coordinates, zoom: float) -> None:
        pass

    @abstractmethod
    def set_fill_rule(self, rule: FillRule) -> None:
        pass

    @abstractmethod
    def is_style_ready(self) -> bool:
        pass

    @abstractmethod
    def has_country_source(self) -> bool:
        pass


def hex_to_rgba(color: str, opacity: float = 1.0) -> List[int]:
    """
    Convert a #rrggbb color to a deck.gl RGBA list.

    Args:
        color: Hex color string, with or without leading '#'
        opacity: Alpha in 0.0-1.0

    Returns:
        [r, g, b, a] with components in 0-255
    """
    value = color.lstrip("#")
    if len(value) == 3:
        value = "".join(c * 2 for c in value)
    if len(value) != 6:
        raise ValueError(f"Expected #rrggbb color, got {color!r}")
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return [r, g, b, int(round(max(0.0, min(1.0, opacity)) * 255))]


def load_country_source(url: str = COUNTRIES_GEOJSON_URL, timeout: float = 60) -> Dict[str, Any]:
    """
    Fetch the admin-0 country polygons.

    Args:
        url: GeoJSON FeatureCollection URL
        timeout: Request timeout in seconds

    Returns:
        Parsed FeatureCollection

    Raises:
        NetworkError: if the download fails or is not a FeatureCollection
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        raise NetworkError(f"Could not load country polygons: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        raise NetworkError("Country polygon source is not a GeoJSON FeatureCollection")

    logger.info("Loaded %d country polygons", len(data["features"]))
    return data


class DeckMapSurface(MapSurface):
    """In-memory map state that renders to a pydeck Deck."""

    def __init__(
        self,
        land_color: str = LAND_COLOR,
        accent_color: str = ACCENT_COLOR,
        border_color: str = BORDER_COLOR,
    ):
        self.land_color = land_color
        self.accent_color = accent_color
        self.border_color = border_color
        self.markers: Dict[int, Dict[str, Any]] = {}
        self.labels: Dict[int, Dict[str, Any]] = {}
        self.view: Dict[str, float] = dict(INITIAL_VIEW)
        self.fill_rule = FillRule(base_color=land_color, highlight_color=accent_color)
        self.country_source: Optional[Dict[str, Any]] = None
        # Becomes true once the map has been drawn for the first time
        self.style_loaded = False
        self._handles = itertools.count(1)

    def add_marker(self, coords: Coordinates) -> int:
        handle = next(self._handles)
        lon, lat = coords
        self.markers[handle] = {"lon": lon, "lat": lat}
        return handle

    def add_label(self, coords: Coordinates, text: str) -> int:
        handle = next(self._handles)
        lon, lat = coords
        self.labels[handle] = {"lon": lon, "lat": lat, "text": text}
        return handle

    def remove_handle(self, handle: int) -> None:
        self.markers.pop(handle, None)
        self.labels.pop(handle, None)

    def update_label_text(self, handle: int, text: str) -> None:
        if handle in self.labels:
            self.labels[handle]["text"] = text

    def fly_to(self, coords: Coordinates, zoom: float) -> None:
        lon, lat = coords
        self.view = {"longitude": lon, "latitude": lat, "zoom": zoom}

    def set_fill_rule(self, rule: FillRule) -> None:
        self.fill_rule = rule

    def is_style_ready(self) -> bool:
        return self.style_loaded

    def has_country_source(self) -> bool:
        return self.country_source is not None

    def attach_country_source(self, geojson: Dict[str, Any]) -> None:
        self.country_source = geojson

    def _country_features(self) -> Dict[str, Any]:
        """Copy the country polygons with a per-feature fill color."""
        rule = self.fill_rule
        features = []
        for feature in self.country_source["features"]:
            properties = dict(feature.get("properties") or {})
            color = rule.color_for(properties.get(rule.property_name))
            properties["fill_color"] = hex_to_rgba(color, rule.opacity)
            features.append({**feature, "properties": properties})
        return {"type": "FeatureCollection", "features": features}

    def build_layers(self) -> List[pdk.Layer]:
        """Create the country, marker and label layers."""
        layers = []

        if self.has_country_source():
            layers.append(
                pdk.Layer(
                    "GeoJsonLayer",
                    data=self._country_features(),
                    get_fill_color="properties.fill_color",
                    get_line_color=hex_to_rgba(self.border_color),
                    line_width_min_pixels=0.5,
                    filled=True,
                    stroked=True,
                    pickable=False,
                )
            )

        layers.append(
            pdk.Layer(
                "ScatterplotLayer",
                data=list(self.markers.values()),
                get_position=["lon", "lat"],
                get_color=[52, 120, 246, 230],
                get_radius=500,
                radius_min_pixels=6,
                radius_max_pixels=12,
                pickable=False,
            )
        )
        layers.append(
            pdk.Layer(
                "TextLayer",
                data=list(self.labels.values()),
                get_position=["lon", "lat"],
                get_text="text",
                get_size=14,
                get_color=[30, 30, 30, 255],
                get_text_anchor="'start'",
                get_alignment_baseline="'center'",
                get_pixel_offset=[10, 0],
                pickable=True,
            )
        )
        return layers

    def to_deck(self) -> pdk.Deck:
        """Render the current state; the first render marks the style loaded."""
        view_state = pdk.ViewState(
            longitude=self.view["longitude"],
            latitude=self.view["latitude"],
            zoom=self.view["zoom"],
            pitch=0
        )
        deck = pdk.Deck(
            map_style=None,
            initial_view_state=view_state,
            layers=self.build_layers(),
            tooltip={"text": "{text}"}
        )
        self.style_loaded = True
        return deck
