"""Project configuration.

Loads optional overrides from locator_config.json and the environment,
falling back to the defaults below. Keep upstream request shapes centralized
here.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- API endpoints ---

GEOCODER_URL = "https://nominatim.openstreetmap.org/search"
SERPAPI_SEARCH_URL = "https://serpapi.com/search"

_DEFAULT_OVERPASS_ENDPOINTS: List[str] = [
    "https://overpass-api.de/api/interpreter",
    "https://overpass.kumi.systems/api/interpreter",
    "https://overpass.private.coffee/api/interpreter",
]

OVERPASS_ENDPOINTS: List[str] = list(_DEFAULT_OVERPASS_ENDPOINTS)
OVERPASS_PREFER_HEALTHY = False

# --- Client identification ---

USER_AGENT = "atm-locator/1.0 (set NOMINATIM_USER_AGENT to identify your deployment)"

# --- Brand profile ---

BRAND_NAME = "Bank of America"
CATEGORY_NAME = "ATM"
BRAND_ALIASES: List[str] = ["bank of america", "bofa", "bankofamerica"]
CATEGORY_KEYWORDS: List[str] = ["atm"]
# Words that historically co-occur with ATM listings whose category is vague.
CONTEXT_KEYWORDS: List[str] = ["drive", "cash"]
ALLOW_CONTEXT_KEYWORDS = True
CATEGORY_TAG: Tuple[str, str] = ("amenity", "atm")
COORDINATE_BRAND_FILTER = False

# --- Brand search source ---

BRAND_SEARCH_SOURCE = "serpapi"  # or "overpass"
SERPAPI_ENGINE = "google_maps"
SERPAPI_GOOGLE_DOMAIN = "google.com"
SERPAPI_LANGUAGE = "en"

# --- Limits ---

DEFAULT_LIMIT = 5
MIN_LIMIT = 1
MAX_LIMIT = 25
MIN_QUERY_LENGTH = 3
DEFAULT_RADIUS_M = 1500.0
MAX_RADIUS_M = 10000.0
OVERPASS_MAX_RESULTS = 100
OVERPASS_QUERY_TIMEOUT_SECONDS = 25

# --- Geocoder throttle ---

GEOCODER_MIN_INTERVAL_SECONDS = 1.1

# --- HTTP ---

GEOCODER_TIMEOUT_SECONDS = 10
OVERPASS_TIMEOUT_SECONDS = 15
SERPAPI_TIMEOUT_SECONDS = 8
OVERPASS_RETRY_DELAYS: Tuple[float, ...] = (0.0, 0.6, 1.2)
TRANSIENT_STATUS_CODES = frozenset({429, 504})

# --- Response text ---

ATTRIBUTION_TEXT = {
    "text": (
        "Results powered by SerpApi Google Maps engine; map links point to Google Maps. "
        "Location lookups by OpenStreetMap Nominatim."
    ),
    "coordinate": (
        "Data (c) OpenStreetMap contributors, ODbL; queried via the Overpass API."
    ),
}


def serpapi_key() -> Optional[str]:
    key = (os.environ.get("SERPAPI_KEY") or "").strip()
    return key or None


def user_agent() -> str:
    return (os.environ.get("NOMINATIM_USER_AGENT") or "").strip() or USER_AGENT


def overpass_endpoints() -> List[str]:
    raw = os.environ.get("OVERPASS_ENDPOINTS")
    if raw is not None:
        return [e.strip() for e in raw.split(",") if e.strip()]
    return list(OVERPASS_ENDPOINTS)


def brand_search_source() -> str:
    return (os.environ.get("BRAND_SEARCH_SOURCE") or BRAND_SEARCH_SOURCE).strip().lower()


def overpass_prefer_healthy() -> bool:
    raw = os.environ.get("OVERPASS_PREFER_HEALTHY")
    if raw is None:
        return bool(OVERPASS_PREFER_HEALTHY)
    return raw.strip().lower() in ("1", "true", "yes", "on")


def geocoder_min_interval() -> float:
    raw = os.environ.get("GEOCODER_MIN_INTERVAL")
    if raw is None:
        return GEOCODER_MIN_INTERVAL_SECONDS
    return float(raw)


def load_locator_config(path: Optional[str] = None) -> bool:
    """Load locator configuration from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "locator_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data: Dict[str, Any] = json.load(f)

    globals_ref = globals()

    brand = data.get("brand", {})
    if brand.get("name"):
        globals_ref["BRAND_NAME"] = str(brand["name"])
    if brand.get("aliases"):
        globals_ref["BRAND_ALIASES"] = [str(a).lower() for a in brand["aliases"]]

    category = data.get("category", {})
    if category.get("name"):
        globals_ref["CATEGORY_NAME"] = str(category["name"])
    if category.get("keywords"):
        globals_ref["CATEGORY_KEYWORDS"] = [str(k).lower() for k in category["keywords"]]
    if "context_keywords" in category:
        globals_ref["CONTEXT_KEYWORDS"] = [str(k).lower() for k in category["context_keywords"]]
    if "allow_context_keywords" in category:
        globals_ref["ALLOW_CONTEXT_KEYWORDS"] = bool(category["allow_context_keywords"])
    tag = category.get("tag")
    if tag:
        key, _, value = str(tag).partition("=")
        globals_ref["CATEGORY_TAG"] = (key.strip(), value.strip())

    endpoints = data.get("overpass_endpoints", [])
    if endpoints:
        globals_ref["OVERPASS_ENDPOINTS"] = [str(e) for e in endpoints]

    source = data.get("brand_search_source")
    if source:
        globals_ref["BRAND_SEARCH_SOURCE"] = str(source).lower()

    limits = data.get("limits", {})
    if "default_limit" in limits:
        globals_ref["DEFAULT_LIMIT"] = int(limits["default_limit"])
    if "default_radius_m" in limits:
        globals_ref["DEFAULT_RADIUS_M"] = float(limits["default_radius_m"])
    if "max_radius_m" in limits:
        globals_ref["MAX_RADIUS_M"] = float(limits["max_radius_m"])
    if "overpass_max_results" in limits:
        globals_ref["OVERPASS_MAX_RESULTS"] = int(limits["overpass_max_results"])

    if "coordinate_brand_filter" in data:
        globals_ref["COORDINATE_BRAND_FILTER"] = bool(data["coordinate_brand_filter"])
    if "overpass_prefer_healthy" in data:
        globals_ref["OVERPASS_PREFER_HEALTHY"] = bool(data["overpass_prefer_healthy"])

    return True
