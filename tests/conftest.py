"""Pytest configuration and fixtures."""
import json
import pytest
from placemapper.core.errors import NetworkError
from placemapper.core.geocode_queue import QueueProcessor
from placemapper.core.location_list import LocationList
from placemapper.core.map_surface import DeckMapSurface
from placemapper.core.models import Candidate
from placemapper.core.registry import LocationRegistry
from placemapper.gazetteers.base import GeocodeProvider


def make_candidate(name, importance=0.5, country_code="FR", lon=2.35, lat=48.85):
    """Build a candidate the way Nominatim would describe it."""
    return Candidate(
        display_name=name,
        lon=lon,
        lat=lat,
        country_code=country_code,
        importance=importance,
    )


class FakeProvider(GeocodeProvider):
    """Provider answering from a dict of query -> candidates or exception."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def lookup(self, query):
        self.calls.append(query)
        response = self.responses.get(query, [])
        if isinstance(response, Exception):
            raise response
        return list(response)

    def get_name(self):
        return "Fake"


class FakeClock:
    """Monotonic clock that only moves when sleep is called."""

    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def iso_lookup():
    """Small alpha-2 to alpha-3 table."""
    return {"FR": "FRA", "US": "USA", "DE": "DEU", "KE": "KEN"}


@pytest.fixture
def map_surface():
    return DeckMapSurface(land_color="#f2efe9", accent_color="#e4572e")


@pytest.fixture
def location_list():
    return LocationList()


@pytest.fixture
def registry(map_surface, location_list, iso_lookup):
    """Registry with deterministic, colliding time-derived ids."""
    return LocationRegistry(map_surface, location_list, iso_lookup=iso_lookup, id_clock=lambda: 1000)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    """Provider covering the common end-to-end scenarios."""
    return FakeProvider({
        "Paris": [
            make_candidate("Paris, Île-de-France, France", importance=0.9),
            make_candidate("Paris, Lamar County, Texas, United States", importance=0.5,
                           country_code="US", lon=-95.55, lat=33.66),
        ],
        "Springfield": [
            make_candidate("Springfield, Illinois, United States", importance=0.7, country_code="US"),
            make_candidate("Springfield, Missouri, United States", importance=0.65, country_code="US"),
            make_candidate("Springfield, Massachusetts, United States", importance=0.6, country_code="US"),
        ],
        "Berlin": [make_candidate("Berlin, Deutschland", importance=0.8, country_code="DE")],
        "Nairobi": [make_candidate("Nairobi, Kenya", importance=0.75, country_code="KE")],
        "Offline": NetworkError("Geocoding error (503)", status_code=503),
    })


@pytest.fixture
def processor(provider, registry, clock):
    return QueueProcessor(provider, registry, delay_ms=1000, clock=clock, sleep=clock.sleep)


@pytest.fixture
def wiki_file(tmp_path):
    """Documentation payload on disk."""
    path = tmp_path / "wiki.json"
    path.write_text(json.dumps({
        "title": "Guide",
        "sections": [
            {"title": "Adding places", "content": ["Type names.", "Press <b>Add</b>."]},
            {"title": "Countries", "content": ["Tick the box."]},
        ],
    }), encoding="utf-8")
    return path
