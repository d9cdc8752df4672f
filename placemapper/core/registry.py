"""Authoritative in-memory set of placed locations."""
import logging
import time
from typing import Callable, Dict, FrozenSet, List, Optional, Set

import pandas as pd

from placemapper.core.country_codes import to_alpha3
from placemapper.core.errors import InvalidInput
from placemapper.core.location_list import LocationListRenderer
from placemapper.core.map_surface import MapSurface
from placemapper.core.models import Candidate, PlacedLocation, UnresolvedEntry

logger = logging.getLogger(__name__)

# Zoom level used when the user jumps to a placed location
ZOOM_TO_LEVEL = 5

PLACEMENT_COLUMNS = ["id", "label", "full_name", "lon", "lat", "country_code", "query"]


def _millis() -> int:
    return time.time_ns() // 1_000_000


def label_from_display_name(display_name: str) -> str:
    """Short label: the text before the first comma of the full name."""
    return display_name.split(",")[0].strip()


def clean_label(label: str) -> str:
    """Trim a user-entered label; blank labels raise InvalidInput."""
    cleaned = (label or "").strip()
    if not cleaned:
        raise InvalidInput("Label must not be blank")
    return cleaned


class LocationRegistry:
    """Placed locations, unresolved queries and the located-country set."""

    def __init__(
        self,
        map_surface: MapSurface,
        location_list: LocationListRenderer,
        iso_lookup: Optional[Dict[str, str]] = None,
        id_clock: Callable[[], int] = _millis,
    ):
        """
        Initialize registry.

        Args:
            map_surface: Map collaborator owning marker and label handles
            location_list: List collaborator rendering the rows
            iso_lookup: Alpha-2 to alpha-3 table (None when it failed to load)
            id_clock: Source of time-derived identifiers in milliseconds
        """
        self.map_surface = map_surface
        self.location_list = location_list
        self.iso_lookup = iso_lookup
        self.unresolved: List[UnresolvedEntry] = []
        self._locations: Dict[int, PlacedLocation] = {}
        self._located_countries: Set[str] = set()
        self._listeners: List[Callable[[], None]] = []
        self._id_clock = id_clock
        self._last_id = 0

    @property
    def locations(self) -> List[PlacedLocation]:
        return list(self._locations.values())

    @property
    def located_countries(self) -> FrozenSet[str]:
        return frozenset(self._located_countries)

    def get(self, location_id: int) -> Optional[PlacedLocation]:
        return self._locations.get(location_id)

    def __len__(self) -> int:
        return len(self._locations)

    def __contains__(self, location_id: int) -> bool:
        return location_id in self._locations

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run after every place or remove."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in self._listeners:
            callback()

    def _allocate_id(self) -> int:
        # Time-derived, bumped when two placements land in the same millisecond
        location_id = self._id_clock()
        if location_id <= self._last_id:
            location_id = self._last_id + 1
        self._last_id = location_id
        return location_id

    def place(self, candidate: Candidate, original_query: str) -> None:
        """
        Turn an accepted candidate into a placed location.

        Args:
            candidate: The chosen geocoding match
            original_query: Query text the candidate answered
        """
        location_id = self._allocate_id()
        label = label_from_display_name(candidate.display_name)
        country_code = to_alpha3(candidate.country_code, self.iso_lookup)
        coords = candidate.coordinates

        location = PlacedLocation(
            id=location_id,
            label=label,
            full_name=candidate.display_name,
            lon=candidate.lon,
            lat=candidate.lat,
            marker_handle=self.map_surface.add_marker(coords),
            label_handle=self.map_surface.add_label(coords, label),
            country_code=country_code,
            query=original_query,
        )
        self._locations[location_id] = location
        if country_code:
            self._located_countries.add(country_code)

        self.location_list.add_entry(location_id, label)
        logger.info("Placed %r as %r (%s)", original_query, label, country_code or "no country")
        self._notify()

    def remove(self, location_id: int) -> None:
        """Remove a placed location and release its map handles; unknown ids are ignored."""
        location = self._locations.pop(location_id, None)
        if location is None:
            return

        self.map_surface.remove_handle(location.marker_handle)
        self.map_surface.remove_handle(location.label_handle)
        # Rebuilt rather than decremented: several locations may share a code
        self.recalculate_located_countries()
        self.location_list.remove_entry(location_id)
        logger.info("Removed location %s (%r)", location_id, location.label)
        self._notify()

    def recalculate_located_countries(self) -> None:
        self._located_countries = {
            loc.country_code for loc in self._locations.values() if loc.country_code
        }

    def rename(self, location_id: int, new_label: str) -> None:
        """Change a location's label; unknown ids and blank labels are ignored."""
        location = self._locations.get(location_id)
        if location is None:
            return
        try:
            label = clean_label(new_label)
        except InvalidInput:
            return

        location.label = label
        self.map_surface.update_label_text(location.label_handle, label)
        self.location_list.update_label(location_id, label)

    def zoom_to(self, location_id: int, zoom: float = ZOOM_TO_LEVEL) -> None:
        location = self._locations.get(location_id)
        if location is None:
            return
        self.map_surface.fly_to(location.coordinates, zoom)

    def add_unresolved(self, query: str, is_error: bool = False) -> UnresolvedEntry:
        """
        Record a query that produced no placement.

        Args:
            query: Original query text
            is_error: True when the lookup failed rather than found nothing

        Returns:
            The recorded entry
        """
        entry = UnresolvedEntry(query=query, is_error=is_error)
        entry.row_key = self.location_list.add_unresolved_entry(query, is_error)
        self.unresolved.append(entry)
        return entry

    def dismiss_unresolved(self, row_key: str) -> None:
        """Drop an unresolved entry from the list by its row key."""
        for index, entry in enumerate(self.unresolved):
            if entry.row_key == row_key:
                del self.unresolved[index]
                self.location_list.remove_unresolved_entry(row_key)
                return

    def to_dataframe(self) -> pd.DataFrame:
        """Placed locations as a table, oldest first."""
        return pd.DataFrame(
            [loc.to_dict() for loc in self._locations.values()],
            columns=PLACEMENT_COLUMNS
        )
