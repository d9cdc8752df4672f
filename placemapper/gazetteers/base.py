"""Base class for geocoding providers."""
from abc import ABC, abstractmethod
from typing import List
from placemapper.core.models import Candidate


class GeocodeProvider(ABC):
    """Base class for free-text geocoding services."""

    @abstractmethod
    def lookup(self, query: str) -> List[Candidate]:
        """
        Resolve a free-text query to ranked candidates.

        Args:
            query: Place name as typed by the user

        Returns:
            Candidates ordered best match first (may be empty)

        Raises:
            NetworkError: if the service could not be reached or answered
                with a non-success status
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get provider name."""
        pass
