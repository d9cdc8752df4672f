"""Data models for geocoding candidates and placed locations."""
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple, FrozenSet, Union


@dataclass
class Candidate:
    """One geocoding match for a query."""
    display_name: str
    lon: float
    lat: float
    country_code: Optional[str] = None
    importance: float = 0.0
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_nominatim(cls, record: Dict[str, Any]) -> "Candidate":
        """
        Build a candidate from a Nominatim search record.

        Args:
            record: JSON object from the /search response

        Returns:
            Candidate with float coordinates and an uppercased alpha-2 code

        Raises:
            KeyError, TypeError, ValueError: if the record is malformed
        """
        address = record.get("address") or {}
        country_code = address.get("country_code")
        return cls(
            display_name=record["display_name"],
            lon=float(record["lon"]),
            lat=float(record["lat"]),
            country_code=country_code.upper() if country_code else None,
            importance=float(record.get("importance") or 0.0),
            raw=record,
        )

    @property
    def coordinates(self) -> Tuple[float, float]:
        return (self.lon, self.lat)


@dataclass
class PlacedLocation:
    """A candidate accepted onto the map."""
    id: int
    label: str
    full_name: str
    lon: float
    lat: float
    marker_handle: int
    label_handle: int
    country_code: Optional[str] = None
    query: str = ""

    @property
    def coordinates(self) -> Tuple[float, float]:
        return (self.lon, self.lat)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display and export."""
        return {
            "id": self.id,
            "label": self.label,
            "full_name": self.full_name,
            "lon": self.lon,
            "lat": self.lat,
            "country_code": self.country_code,
            "query": self.query,
        }


@dataclass
class UnresolvedEntry:
    """A query that produced no placement."""
    query: str
    is_error: bool = False
    row_key: Optional[str] = None

    @property
    def message(self) -> str:
        return "Error searching" if self.is_error else "Not found"


@dataclass
class AmbiguityContext:
    """Pending human choice between close candidates for one query."""
    query: str
    choices: List[Candidate]

    @property
    def prompt(self) -> str:
        return f'Multiple matches for "{self.query}":'


@dataclass(frozen=True)
class FillRule:
    """Fill style for the country polygon layer."""
    base_color: str
    highlight_color: str
    highlight_codes: FrozenSet[str] = frozenset()
    opacity: float = 1.0
    # Natural Earth admin-0 property holding the alpha-3 code
    property_name: str = "ADM0_A3"

    @property
    def is_highlighting(self) -> bool:
        return bool(self.highlight_codes)

    def color_for(self, admin_code: Optional[str]) -> str:
        """Fill color of a polygon with the given admin code."""
        if admin_code in self.highlight_codes:
            return self.highlight_color
        return self.base_color

    def to_expression(self) -> Union[str, List[Any]]:
        """
        Express the rule as a MapLibre style fill-color value.

        Returns:
            The plain base color, or a `case` expression matching the
            admin code property against the highlighted codes
        """
        if not self.is_highlighting:
            return self.base_color
        return [
            "case",
            ["in", ["get", self.property_name], ["literal", sorted(self.highlight_codes)]],
            self.highlight_color,
            self.base_color,
        ]
