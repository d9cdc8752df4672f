"""Static ISO 3166 alpha-2 to alpha-3 country code lookup."""
import json
from pathlib import Path
from typing import Dict, Optional
from placemapper.core.config import ISO_LOOKUP_PATH
from placemapper.core.errors import LookupDataUnavailable


def load_iso_lookup(path: Path = ISO_LOOKUP_PATH) -> Dict[str, str]:
    """
    Load the alpha-2 to alpha-3 lookup table.

    Args:
        path: JSON file holding an object of uppercase alpha-2 keys

    Returns:
        Mapping of alpha-2 to alpha-3 codes

    Raises:
        LookupDataUnavailable: if the file is missing, unreadable or not a
            JSON object of strings
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise LookupDataUnavailable(f"Could not load ISO country code lookup from {path}: {e}") from e

    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise LookupDataUnavailable(f"ISO country code lookup at {path} is not a mapping of strings")

    return {k.upper(): v.upper() for k, v in data.items()}


def to_alpha3(alpha2: Optional[str], lookup: Optional[Dict[str, str]]) -> Optional[str]:
    """Map an alpha-2 code to alpha-3; None when either side is missing."""
    if not alpha2 or not lookup:
        return None
    return lookup.get(alpha2.upper())
