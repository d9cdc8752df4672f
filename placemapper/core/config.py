"""Configuration management for the place mapper application."""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", PROJECT_ROOT / "data"))
ISO_LOOKUP_PATH = Path(os.getenv("ISO_LOOKUP_PATH", DATA_DIR / "iso_a2_to_a3.json"))
WIKI_PATH = Path(os.getenv("WIKI_PATH", DATA_DIR / "wiki.json"))

# Nominatim settings
NOMINATIM_URL: str = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
# Nominatim's usage policy requires a descriptive User-Agent
USER_AGENT: str = os.getenv("USER_AGENT", "PlaceMapper/1.0 (batch place locator; sporadic use)")
RESULT_LIMIT: int = int(os.getenv("RESULT_LIMIT", "5"))
_timeout = os.getenv("REQUEST_TIMEOUT")
REQUEST_TIMEOUT: Optional[float] = float(_timeout) if _timeout else None

# Queue settings
API_THROTTLE_MS: int = int(os.getenv("API_THROTTLE_MS", "1000"))
AMBIGUITY_GAP: float = float(os.getenv("AMBIGUITY_GAP", "0.3"))

# Map settings
COUNTRIES_GEOJSON_URL: str = os.getenv(
    "COUNTRIES_GEOJSON_URL",
    "https://raw.githubusercontent.com/nvkelso/natural-earth-vector/master/geojson/ne_50m_admin_0_countries.geojson",
)
COUNTRIES_RETRY_SECONDS: float = float(os.getenv("COUNTRIES_RETRY_SECONDS", "30"))
LAND_COLOR: str = os.getenv("LAND_COLOR", "#f2efe9")
ACCENT_COLOR: str = os.getenv("ACCENT_COLOR", "#e4572e")
BORDER_COLOR: str = os.getenv("BORDER_COLOR", "#bbbbbb")

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
