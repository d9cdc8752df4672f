"""OpenStreetMap Nominatim search provider."""
import logging
import requests
from typing import List, Optional
from placemapper.gazetteers.base import GeocodeProvider
from placemapper.core.config import NOMINATIM_URL, USER_AGENT, RESULT_LIMIT, REQUEST_TIMEOUT
from placemapper.core.errors import NetworkError
from placemapper.core.models import Candidate

logger = logging.getLogger(__name__)


class NominatimProvider(GeocodeProvider):
    """Free-text search against a Nominatim instance."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        limit: int = RESULT_LIMIT,
        timeout: Optional[float] = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Nominatim provider.

        Args:
            base_url: Search endpoint URL (defaults to the public instance)
            user_agent: Client identification sent with every request
            limit: Maximum number of results requested
            timeout: Request timeout in seconds (None waits indefinitely)
            session: Optional requests session to reuse connections
        """
        self.base_url = base_url or NOMINATIM_URL
        self.user_agent = user_agent or USER_AGENT
        self.limit = limit
        self.timeout = timeout
        self.session = session

    def lookup(self, query: str) -> List[Candidate]:
        """Run one search request and parse the result records."""
        params = {
            "q": query,
            "format": "json",
            "addressdetails": 1,
            "limit": self.limit,
        }
        headers = {"User-Agent": self.user_agent}
        http = self.session or requests

        try:
            response = http.get(
                self.base_url,
                params=params,
                headers=headers,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise NetworkError(f"Geocoding request failed: {e}") from e

        if not response.ok:
            raise NetworkError(
                f"Geocoding error ({response.status_code})",
                status_code=response.status_code
            )

        try:
            records = response.json()
        except ValueError as e:
            raise NetworkError(f"Malformed geocoding response: {e}") from e

        # Nominatim reports some failures as a 200 with an {"error": ...} object
        if not isinstance(records, list):
            detail = records.get("error") if isinstance(records, dict) else records
            raise NetworkError(f"Unexpected geocoding response: {detail!r}")

        try:
            candidates = [Candidate.from_nominatim(record) for record in records]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise NetworkError(f"Malformed geocoding response: {e}") from e

        logger.debug("Nominatim returned %d record(s) for %r", len(candidates), query)
        return candidates

    def get_name(self) -> str:
        """Get provider name."""
        return "Nominatim"
