"""SerpApi Google Maps client used for text-query brand search."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from . import config
from .errors import ConfigurationError, UpstreamError
from .http import HttpClient

logger = logging.getLogger(__name__)


class BrandSearchClient:
    def __init__(
        self,
        http_client: HttpClient,
        api_key: Optional[str],
        url: str = config.SERPAPI_SEARCH_URL,
        timeout: float = config.SERPAPI_TIMEOUT_SECONDS,
    ) -> None:
        self.http = http_client
        self.api_key = api_key
        self.url = url
        self.timeout = timeout

    def search(self, query: str) -> List[Dict[str, Any]]:
        if not self.api_key:
            raise ConfigurationError("Missing SERPAPI_KEY env var")
        params = build_search_params(query, self.api_key)
        response = self.http.get_json(self.url, params, self.timeout, kind="search")
        records = parse_local_results(response)
        logger.info("Brand search returned %s listings", len(records))
        return records


def build_search_params(query: str, api_key: str) -> Dict[str, str]:
    return {
        "engine": config.SERPAPI_ENGINE,
        "type": "search",
        "google_domain": config.SERPAPI_GOOGLE_DOMAIN,
        "hl": config.SERPAPI_LANGUAGE,
        "q": query,
        "api_key": api_key,
    }


def parse_local_results(response: Any) -> List[Dict[str, Any]]:
    if not isinstance(response, dict):
        raise UpstreamError("Unexpected SerpApi response shape")
    if response.get("error") and not response.get("local_results"):
        message = str(response["error"])
        # "no results" is reported through the error field.
        if "hasn't returned any results" in message:
            return []
        raise UpstreamError(f"SerpApi error: {message[:300]}")
    raw = response.get("local_results")
    if not isinstance(raw, list):
        return []
    return [r for r in raw if isinstance(r, dict)]
