"""Per-session application state, built at startup and torn down with the session."""
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import requests

from placemapper.core.config import (
    API_THROTTLE_MS,
    COUNTRIES_GEOJSON_URL,
    COUNTRIES_RETRY_SECONDS,
    ISO_LOOKUP_PATH,
    WIKI_PATH,
)
from placemapper.core.country_codes import load_iso_lookup
from placemapper.core.docs import DocumentationPanel
from placemapper.core.errors import LookupDataUnavailable, NetworkError
from placemapper.core.geocode_queue import QueueProcessor, ProcessorState
from placemapper.core.highlight import CountryHighlighter
from placemapper.core.location_list import LocationList
from placemapper.core.map_surface import DeckMapSurface, load_country_source
from placemapper.core.registry import LocationRegistry
from placemapper.gazetteers.base import GeocodeProvider
from placemapper.gazetteers.nominatim import NominatimProvider
from placemapper.utils.logging import log_error

POLYGONS_UNAVAILABLE = "Country outlines failed to load; retrying shortly."


@dataclass
class LocatorSession:
    """Everything one user session owns."""
    map_surface: DeckMapSurface
    location_list: LocationList
    registry: LocationRegistry
    highlighter: CountryHighlighter
    processor: QueueProcessor
    docs: DocumentationPanel
    http: Optional[requests.Session] = None
    clock: Callable[[], float] = time.monotonic
    polygons_error: Optional[str] = None
    _polygons_attempted_at: Optional[float] = field(default=None, init=False, repr=False)

    def load_country_polygons(self, url: str = COUNTRIES_GEOJSON_URL) -> bool:
        """
        Fetch the country polygons into the map.

        Returns:
            True on success; on failure `polygons_error` holds the user-visible reason
        """
        self._polygons_attempted_at = self.clock()
        try:
            geojson = load_country_source(url)
        except NetworkError as e:
            log_error(e, {"module": __name__, "function": "load_country_polygons", "url": url})
            self.polygons_error = POLYGONS_UNAVAILABLE
            return False
        self.polygons_error = None
        self.map_surface.attach_country_source(geojson)
        self.highlighter.refresh()
        return True

    def ensure_country_polygons(self, retry_after: float = COUNTRIES_RETRY_SECONDS) -> bool:
        """Load the polygons if still missing, at most once per retry interval."""
        if self.map_surface.has_country_source():
            return True
        last = self._polygons_attempted_at
        if last is not None and self.clock() - last < retry_after:
            return False
        return self.load_country_polygons()

    def close(self) -> None:
        if self.http is not None:
            self.http.close()
            self.http = None


def create_session(
    provider: Optional[GeocodeProvider] = None,
    iso_lookup_path: Path = ISO_LOOKUP_PATH,
    wiki_path: Path = WIKI_PATH,
    delay_ms: int = API_THROTTLE_MS,
    clock: Optional[Callable[[], float]] = None,
    sleep: Optional[Callable[[float], None]] = None,
    on_state_change: Optional[Callable[[ProcessorState], None]] = None,
) -> LocatorSession:
    """
    Build a session.

    Args:
        provider: Geocoding provider (defaults to Nominatim over a shared HTTP session)
        iso_lookup_path: Country code lookup file; a load failure disables highlighting
        wiki_path: Documentation payload for the sidebar
        delay_ms: Minimum delay between lookups
        clock: Clock override for the queue processor
        sleep: Sleep override for the queue processor
        on_state_change: Queue state listener

    Returns:
        A ready session
    """
    http = None
    if provider is None:
        http = requests.Session()
        provider = NominatimProvider(session=http)

    try:
        iso_lookup = load_iso_lookup(iso_lookup_path)
    except LookupDataUnavailable as e:
        log_error(e, {"module": __name__, "function": "create_session"})
        iso_lookup = None

    map_surface = DeckMapSurface()
    location_list = LocationList()
    registry = LocationRegistry(map_surface, location_list, iso_lookup=iso_lookup)
    highlighter = CountryHighlighter(map_surface, registry, available=iso_lookup is not None)
    registry.add_listener(highlighter.refresh)

    processor_kwargs = {}
    if clock is not None:
        processor_kwargs["clock"] = clock
    if sleep is not None:
        processor_kwargs["sleep"] = sleep
    processor = QueueProcessor(
        provider,
        registry,
        delay_ms=delay_ms,
        on_state_change=on_state_change,
        **processor_kwargs
    )

    session = LocatorSession(
        map_surface=map_surface,
        location_list=location_list,
        registry=registry,
        highlighter=highlighter,
        processor=processor,
        docs=DocumentationPanel(wiki_path),
        http=http,
    )
    if clock is not None:
        session.clock = clock
    return session
