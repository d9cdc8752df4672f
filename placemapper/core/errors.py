"""Exception types raised by the place mapper pipeline."""
from typing import Optional


class PlaceMapperError(Exception):
    """Base class for all place mapper errors."""


class NetworkError(PlaceMapperError):
    """Geocoding request failed or returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NoMatchError(PlaceMapperError):
    """Geocoding returned zero usable candidates."""


class LookupDataUnavailable(PlaceMapperError):
    """The static country-code lookup table could not be loaded."""


class InvalidInput(PlaceMapperError):
    """Empty batch submission or blank rename."""
