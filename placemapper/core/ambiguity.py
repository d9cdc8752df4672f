"""Gap-based disambiguation between geocoding candidates."""
from dataclasses import dataclass
from typing import List, Union
from placemapper.core.config import AMBIGUITY_GAP
from placemapper.core.errors import NoMatchError
from placemapper.core.models import Candidate

# Choices offered to the user when the top matches are too close
MAX_CHOICES = 5


@dataclass
class AutoResolved:
    """The best candidate can be placed without asking."""
    candidate: Candidate


@dataclass
class Ambiguous:
    """The user has to pick among these candidates."""
    choices: List[Candidate]


Decision = Union[AutoResolved, Ambiguous]


def decide(candidates: List[Candidate], gap_threshold: float = AMBIGUITY_GAP) -> Decision:
    """
    Decide whether the top candidate is clearly better than the runner-up.

    Candidates are taken in the order the service ranked them.

    Args:
        candidates: Deduplicated candidates, best first
        gap_threshold: Minimum importance lead for automatic acceptance

    Returns:
        AutoResolved with the top candidate, or Ambiguous with up to
        MAX_CHOICES candidates

    Raises:
        NoMatchError: if there are no candidates
    """
    if not candidates:
        raise NoMatchError("No candidates to choose from")

    if len(candidates) == 1:
        return AutoResolved(candidates[0])

    gap = candidates[0].importance - candidates[1].importance
    if gap > gap_threshold:
        return AutoResolved(candidates[0])

    return Ambiguous(candidates[:MAX_CHOICES])
