"""Geocode client: one lookup per query with duplicate collapsing."""
from typing import List
from placemapper.core.models import Candidate
from placemapper.gazetteers.base import GeocodeProvider
from placemapper.utils.logging import log_structured
from placemapper.utils.timing import Timer


def dedupe_candidates(candidates: List[Candidate]) -> List[Candidate]:
    """
    Collapse candidates sharing a display name to the first occurrence.

    Args:
        candidates: Candidates in service ranking order

    Returns:
        Candidates with unique display names, ranking order preserved
    """
    seen = set()
    unique = []
    for candidate in candidates:
        if candidate.display_name in seen:
            continue
        seen.add(candidate.display_name)
        unique.append(candidate)
    return unique


def geocode(provider: GeocodeProvider, query: str) -> List[Candidate]:
    """
    Look up a query and return deduplicated candidates.

    Args:
        provider: Geocoding provider to query
        query: Place name to resolve

    Returns:
        Unique candidates, best first

    Raises:
        NetworkError: propagated from the provider; never retried
    """
    with Timer("geocode_lookup", provider=provider.get_name(), query=query) as timer:
        candidates = provider.lookup(query)

    unique = dedupe_candidates(candidates)
    log_structured(
        "info",
        "Geocoded query",
        query=query,
        provider=provider.get_name(),
        results=len(candidates),
        unique_results=len(unique),
        elapsed_ms=round(timer.elapsed_ms, 1),
    )
    return unique
