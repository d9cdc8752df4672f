"""Tests for the pydeck map surface."""
import pytest
import requests
from unittest.mock import MagicMock, patch
from placemapper.core.errors import NetworkError
from placemapper.core.map_surface import INITIAL_VIEW, hex_to_rgba, load_country_source
from placemapper.core.models import FillRule

COUNTRIES = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"ADM0_A3": "FRA", "NAME": "France"},
         "geometry": {"type": "Point", "coordinates": [2.0, 46.0]}},
        {"type": "Feature", "properties": {"ADM0_A3": "ESP", "NAME": "Spain"},
         "geometry": {"type": "Point", "coordinates": [-4.0, 40.0]}},
    ],
}


def test_hex_to_rgba():
    """Test hex color conversion."""
    assert hex_to_rgba("#ff8000") == [255, 128, 0, 255]
    assert hex_to_rgba("00ff00", 0.4) == [0, 255, 0, 102]
    assert hex_to_rgba("#abc") == [170, 187, 204, 255]
    with pytest.raises(ValueError):
        hex_to_rgba("#12345")


def test_handles_are_distinct(map_surface):
    """Test markers and labels get their own handles."""
    marker = map_surface.add_marker((1.0, 2.0))
    label = map_surface.add_label((1.0, 2.0), "Here")

    assert marker != label
    assert map_surface.markers == {marker: {"lon": 1.0, "lat": 2.0}}
    assert map_surface.labels == {label: {"lon": 1.0, "lat": 2.0, "text": "Here"}}

    map_surface.update_label_text(label, "There")
    assert map_surface.labels[label]["text"] == "There"

    map_surface.remove_handle(marker)
    map_surface.remove_handle(label)
    map_surface.remove_handle(999)
    assert map_surface.markers == {}
    assert map_surface.labels == {}


def test_readiness(map_surface):
    """Test the map is ready after first render and with polygons attached."""
    assert not map_surface.is_style_ready()
    assert not map_surface.has_country_source()

    map_surface.to_deck()
    map_surface.attach_country_source(COUNTRIES)

    assert map_surface.is_style_ready()
    assert map_surface.has_country_source()


def test_fly_to(map_surface):
    """Test the view follows fly_to."""
    assert map_surface.view == INITIAL_VIEW
    map_surface.fly_to((36.8, -1.3), 5)
    assert map_surface.view == {"longitude": 36.8, "latitude": -1.3, "zoom": 5}


def test_country_layer_colors(map_surface):
    """Test per-country fill colors follow the rule."""
    map_surface.attach_country_source(COUNTRIES)
    map_surface.set_fill_rule(FillRule(
        base_color="#ffffff",
        highlight_color="#ff0000",
        highlight_codes=frozenset({"FRA"}),
        opacity=0.4,
    ))

    features = map_surface._country_features()["features"]

    assert features[0]["properties"]["fill_color"] == [255, 0, 0, 102]
    assert features[1]["properties"]["fill_color"] == [255, 255, 255, 102]
    assert "fill_color" not in COUNTRIES["features"][0]["properties"]


def test_build_layers(map_surface):
    """Test layer stack with and without country polygons."""
    map_surface.add_marker((1.0, 2.0))
    assert [layer.type for layer in map_surface.build_layers()] == ["ScatterplotLayer", "TextLayer"]

    map_surface.attach_country_source(COUNTRIES)
    assert [layer.type for layer in map_surface.build_layers()] == [
        "GeoJsonLayer", "ScatterplotLayer", "TextLayer"
    ]


@patch("placemapper.core.map_surface.requests.get")
def test_load_country_source(mock_get):
    """Test downloading the country polygons."""
    response = MagicMock()
    response.json.return_value = COUNTRIES
    mock_get.return_value = response

    assert load_country_source("https://example.org/countries.geojson") == COUNTRIES
    response.raise_for_status.assert_called_once()


@patch("placemapper.core.map_surface.requests.get")
def test_load_country_source_failures(mock_get):
    """Test download errors and non-GeoJSON payloads raise NetworkError."""
    mock_get.side_effect = requests.ConnectionError("offline")
    with pytest.raises(NetworkError):
        load_country_source("https://example.org/countries.geojson")

    response = MagicMock()
    response.json.return_value = {"type": "Feature"}
    mock_get.side_effect = None
    mock_get.return_value = response
    with pytest.raises(NetworkError):
        load_country_source("https://example.org/countries.geojson")
