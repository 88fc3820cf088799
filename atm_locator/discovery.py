"""Discovery orchestration: request validation, mode dispatch, result envelope."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from . import config
from .brand import BrandMatcher, BrandProfile, default_profile
from .cache import GeocodeCache, Throttle
from .errors import ConfigurationError, LocatorError, ValidationError
from .geo import GeoPoint
from .geocoder import Geocoder
from .http import HttpClient, RequestMetrics
from .normalize import PoiCandidate, candidate_from_element, candidate_from_listing
from .poi_pool import EndpointPool, TagFilter, clamp_radius
from .ranking import preserve_order, rank
from .reporting import render_error_payload, render_result_payload
from .search_client import BrandSearchClient

logger = logging.getLogger(__name__)

MODE_TEXT = "text"
MODE_COORDINATE = "coordinate"
SEARCH_SOURCES = ("serpapi", "overpass")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class DiscoveryRequest:
    mode: str
    limit: int
    radius_m: float
    query: Optional[str] = None
    point: Optional[GeoPoint] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "DiscoveryRequest":
        if not isinstance(payload, Mapping):
            raise ValidationError("request", "must be an object")

        has_query = payload.get("query") is not None
        has_coords = payload.get("lat") is not None or payload.get("lon") is not None
        if has_query and has_coords:
            raise ValidationError("request", "must carry either query or lat/lon, not both")
        if not has_query and not has_coords:
            raise ValidationError("request", "must carry query or lat/lon")

        limit = _parse_limit(payload.get("limit"))
        radius_m = _parse_radius(payload.get("radius_m"))

        if has_query:
            query = payload["query"]
            if not isinstance(query, str):
                raise ValidationError("query", "must be a string")
            query = query.strip()
            if len(query) < config.MIN_QUERY_LENGTH:
                raise ValidationError(
                    "query", f"must be at least {config.MIN_QUERY_LENGTH} characters"
                )
            return cls(mode=MODE_TEXT, limit=limit, radius_m=radius_m, query=query)

        lat = payload.get("lat")
        lon = payload.get("lon")
        if lat is None or lon is None:
            raise ValidationError("lat/lon", "both lat and lon are required")
        if not _is_number(lat):
            raise ValidationError("lat", "must be a number")
        if not _is_number(lon):
            raise ValidationError("lon", "must be a number")
        point = GeoPoint(float(lat), float(lon))
        return cls(mode=MODE_COORDINATE, limit=limit, radius_m=radius_m, point=point)


def _parse_limit(value: Any) -> int:
    if value is None:
        return config.DEFAULT_LIMIT
    if not _is_number(value) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError("limit", "must be an integer")
    limit = int(value)
    if not config.MIN_LIMIT <= limit <= config.MAX_LIMIT:
        raise ValidationError(
            "limit", f"must be between {config.MIN_LIMIT} and {config.MAX_LIMIT}"
        )
    return limit


def _parse_radius(value: Any) -> float:
    if value is None:
        return clamp_radius(config.DEFAULT_RADIUS_M)
    if not _is_number(value) or not math.isfinite(value) or value <= 0:
        raise ValidationError("radius_m", "must be a positive number")
    return clamp_radius(value)


@dataclass(frozen=True)
class DiscoveryResult:
    count: int
    items: Tuple[PoiCandidate, ...]
    rewritten_query: str
    mode: str

    @classmethod
    def of(cls, items: List[PoiCandidate], rewritten_query: str, mode: str) -> "DiscoveryResult":
        return cls(count=len(items), items=tuple(items), rewritten_query=rewritten_query, mode=mode)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "items": [item.as_dict() for item in self.items],
            "rewritten_query": self.rewritten_query,
        }


class Discovery:
    def __init__(
        self,
        geocoder: Geocoder,
        pool: Optional[EndpointPool],
        search_client: Optional[BrandSearchClient] = None,
        profile: Optional[BrandProfile] = None,
        brand_search_source: str = config.BRAND_SEARCH_SOURCE,
        coordinate_brand_filter: bool = config.COORDINATE_BRAND_FILTER,
    ) -> None:
        self.geocoder = geocoder
        self.pool = pool
        self.search_client = search_client
        self.profile = profile or default_profile()
        self.matcher = BrandMatcher(self.profile)
        self.brand_search_source = brand_search_source
        self.coordinate_brand_filter = coordinate_brand_filter

    def discover(self, request: Any) -> DiscoveryResult:
        if not isinstance(request, DiscoveryRequest):
            request = DiscoveryRequest.from_dict(request)
        if request.query is not None:
            return self._discover_text(request.query, request)
        if request.point is not None:
            return self._discover_coordinate(request.point, request)
        raise ValidationError("request", "must carry query or lat/lon")

    def discover_payload(self, payload: Any) -> Dict[str, Any]:
        """Run one request and shape the outcome; never raises."""
        try:
            result = self.discover(payload)
        except LocatorError as exc:
            logger.error("Discovery failed (%s): %s", exc.kind, exc)
            return render_error_payload(exc, self.profile)
        except Exception as exc:
            logger.exception("Unexpected discovery failure")
            return render_error_payload(exc, self.profile)
        return render_result_payload(result, self.profile)

    def _require_pool(self) -> EndpointPool:
        if self.pool is None:
            raise ConfigurationError("No Overpass endpoints configured")
        return self.pool

    def _tag_filter(self, brand_filtered: bool) -> TagFilter:
        key, value = self.profile.category_tag
        aliases = self.profile.aliases if brand_filtered else ()
        return TagFilter(key=key, value=value, name_aliases=tuple(aliases))

    def _discover_text(self, query: str, request: DiscoveryRequest) -> DiscoveryResult:
        source = self.brand_search_source
        if source not in SEARCH_SOURCES:
            raise ConfigurationError(f"Unknown brand search source: {source}")
        search_client = self.search_client if source == "serpapi" else None
        if source == "serpapi" and (search_client is None or not search_client.api_key):
            raise ConfigurationError("Missing SERPAPI_KEY env var")
        if source == "overpass":
            self._require_pool()

        rewritten = self.profile.rewrite_query(query)
        default_name = f"{self.profile.brand} {self.profile.category}"

        logger.info("Stage 1: geocode")
        geocoded = self.geocoder.resolve(query)
        origin = geocoded.point if geocoded is not None else None

        logger.info("Stage 2: brand search (%s)", source)
        if search_client is not None:
            records = search_client.search(rewritten)
            candidates = [
                candidate_from_listing(r, default_name) for r in records if self.matcher.matches(r)
            ]
        else:
            if origin is None:
                logger.warning("No location found for %r; nothing to search around", query)
                return DiscoveryResult.of([], rewritten, MODE_TEXT)
            records = self._require_pool().query(self._tag_filter(True), origin, request.radius_m)
            candidates = [
                candidate_from_element(r, default_name) for r in records if self.matcher.matches(r)
            ]
        logger.info("Stage 3: brand filter kept %s of %s records", len(candidates), len(records))

        if origin is None:
            logger.info("Stage 4: upstream order (no origin)")
            items = preserve_order(candidates, request.limit)
        else:
            logger.info("Stage 4: distance rank")
            items = rank(origin, candidates, request.limit)
        return DiscoveryResult.of(items, rewritten, MODE_TEXT)

    def _discover_coordinate(self, origin: GeoPoint, request: DiscoveryRequest) -> DiscoveryResult:
        pool = self._require_pool()
        tag_filter = self._tag_filter(self.coordinate_brand_filter)

        logger.info("Stage 1: tag query")
        records = pool.query(tag_filter, origin, request.radius_m)
        if self.coordinate_brand_filter:
            records = [r for r in records if self.matcher.matches(r)]
        candidates = [candidate_from_element(r, self.profile.category) for r in records]

        logger.info("Stage 2: distance rank (%s candidates)", len(candidates))
        items = rank(origin, candidates, request.limit)
        described = (
            f"{tag_filter.describe()} within {request.radius_m:.0f}m of "
            f"{origin.lat:.6f},{origin.lon:.6f}"
        )
        return DiscoveryResult.of(items, described, MODE_COORDINATE)


def build_discovery(
    metrics: Optional[RequestMetrics] = None,
    cache: Optional[GeocodeCache] = None,
    throttle: Optional[Throttle] = None,
) -> Discovery:
    """Wire a Discovery from the current config; call once per process."""
    http_client = HttpClient(metrics=metrics)
    geocoder = Geocoder(
        http_client,
        cache if cache is not None else GeocodeCache(),
        throttle if throttle is not None else Throttle(config.geocoder_min_interval()),
        metrics=metrics,
    )
    endpoints = config.overpass_endpoints()
    pool = None
    if endpoints:
        pool = EndpointPool(
            http_client,
            endpoints,
            prefer_healthy=config.overpass_prefer_healthy(),
            metrics=metrics,
        )
    search_client = BrandSearchClient(http_client, config.serpapi_key())
    return Discovery(
        geocoder,
        pool,
        search_client=search_client,
        profile=default_profile(),
        brand_search_source=config.brand_search_source(),
        coordinate_brand_filter=config.COORDINATE_BRAND_FILTER,
    )
