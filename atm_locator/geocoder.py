"""Place-name geocoding against a Nominatim-style search endpoint."""
from __future__ import annotations

import logging
from typing import Any, Optional

from . import config
from .cache import GeocodeCache, GeocodeResult, Throttle
from .errors import ValidationError
from .geo import point_or_none
from .http import HttpClient, RequestMetrics

logger = logging.getLogger(__name__)


class Geocoder:
    def __init__(
        self,
        http_client: HttpClient,
        cache: GeocodeCache,
        throttle: Throttle,
        url: str = config.GEOCODER_URL,
        timeout: float = config.GEOCODER_TIMEOUT_SECONDS,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.http = http_client
        self.cache = cache
        self.throttle = throttle
        self.url = url
        self.timeout = timeout
        self.metrics = metrics

    def resolve(self, query: str) -> Optional[GeocodeResult]:
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("query", "must be a non-empty string")

        hit, cached = self.cache.lookup(query)
        if hit:
            logger.debug("Geocode cache hit for %r", query)
            if self.metrics is not None:
                self.metrics.inc_cache_hit("geocode")
            return cached

        self.throttle.wait()
        params = {"q": query.strip(), "format": "json", "limit": 1}
        response = self.http.get_json(self.url, params, self.timeout, kind="geocode")
        result = parse_geocode_response(response)
        if result is None:
            logger.info("Geocoder found no match for %r", query)
        self.cache.store(query, result)
        return result


def parse_geocode_response(response: Any) -> Optional[GeocodeResult]:
    if not isinstance(response, list) or not response:
        return None
    first = response[0]
    if not isinstance(first, dict):
        return None
    point = point_or_none(first.get("lat"), first.get("lon"))
    if point is None:
        return None
    return GeocodeResult(point=point, display_name=str(first.get("display_name") or ""))
