"""Tag-based POI queries over an ordered pool of interchangeable Overpass endpoints."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from . import config
from .errors import ConfigurationError, UpstreamError, UpstreamTimeoutError
from .geo import GeoPoint
from .http import HttpClient, RequestMetrics, is_transient

logger = logging.getLogger(__name__)

BRAND_TAG_KEYS = ("operator", "brand", "name")
_REGEX_SPECIALS = set(".^$*+?()[]{}|\\")


@dataclass(frozen=True)
class TagFilter:
    key: str
    value: str
    name_aliases: Tuple[str, ...] = ()

    @property
    def brand_filtered(self) -> bool:
        return bool(self.name_aliases)

    def describe(self) -> str:
        text = f'{self.key}={self.value}'
        if self.name_aliases:
            text += f' ({"|".join(BRAND_TAG_KEYS)} ~ {"|".join(self.name_aliases)})'
        return text


def _ql_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def alias_regex(aliases: Sequence[str]) -> str:
    """Alternation of literal aliases, escaped for a quoted Overpass QL regex."""
    parts = []
    for alias in aliases:
        escaped = "".join("\\" + ch if ch in _REGEX_SPECIALS else ch for ch in alias)
        parts.append(escaped)
    return _ql_string("|".join(parts))


def clamp_radius(radius_m: float) -> float:
    return max(1.0, min(float(radius_m), float(config.MAX_RADIUS_M)))


def build_tag_query(
    tag_filter: TagFilter,
    origin: GeoPoint,
    radius_m: float,
    max_results: Optional[int] = None,
    timeout_s: int = config.OVERPASS_QUERY_TIMEOUT_SECONDS,
) -> str:
    cap = int(max_results if max_results is not None else config.OVERPASS_MAX_RESULTS)
    around = f"(around:{clamp_radius(radius_m):.0f},{origin.lat:.6f},{origin.lon:.6f})"
    category = f'["{_ql_string(tag_filter.key)}"="{_ql_string(tag_filter.value)}"]'

    clauses: List[str] = [category]
    if tag_filter.name_aliases:
        regex = alias_regex(tag_filter.name_aliases)
        clauses = [f'{category}["{key}"~"{regex}",i]' for key in BRAND_TAG_KEYS]

    parts: List[str] = []
    for clause in clauses:
        for element_type in ("node", "way", "relation"):
            parts.append(f"{element_type}{clause}{around};")

    return (
        f"[out:json][timeout:{int(timeout_s)}];"
        f"("
        f"{''.join(parts)}"
        f");"
        f"out center {cap};"
    )


def parse_elements(response: Any) -> List[Dict[str, Any]]:
    if not isinstance(response, dict) or not isinstance(response.get("elements"), list):
        raise UpstreamError("Unexpected Overpass response shape")
    elements = [e for e in response["elements"] if isinstance(e, dict)]
    remark = str(response.get("remark") or "")
    if not elements and "runtime error" in remark.lower():
        # Overpass reports query timeouts in-band with HTTP 200.
        raise UpstreamTimeoutError(f"Overpass runtime error: {remark[:200]}")
    return elements


@dataclass
class EndpointHealth:
    url: str
    last_success: Optional[float] = None
    last_failure: Optional[float] = None
    last_error: Optional[str] = None

    @property
    def healthy(self) -> bool:
        if self.last_failure is None:
            return True
        return self.last_success is not None and self.last_success >= self.last_failure


@dataclass
class FailoverState:
    """Cursor over (endpoint, attempt) pairs."""

    endpoints: List[str]
    delays: Tuple[float, ...]
    endpoint_index: int = 0
    attempt_index: int = 0
    history: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.endpoint_index >= len(self.endpoints) or not self.delays

    @property
    def endpoint(self) -> str:
        return self.endpoints[self.endpoint_index]

    @property
    def delay(self) -> float:
        return float(self.delays[self.attempt_index])

    @property
    def attempt(self) -> int:
        return self.attempt_index + 1

    @property
    def has_retry_left(self) -> bool:
        return self.attempt_index + 1 < len(self.delays)

    def on_transient_failure(self) -> None:
        self.history.append((self.endpoint, self.attempt))
        if self.has_retry_left:
            self.attempt_index += 1
        else:
            self._advance()

    def on_terminal_failure(self) -> None:
        self.history.append((self.endpoint, self.attempt))
        self._advance()

    def _advance(self) -> None:
        self.endpoint_index += 1
        self.attempt_index = 0


class EndpointPool:
    def __init__(
        self,
        http_client: HttpClient,
        endpoints: Sequence[str],
        retry_delays: Sequence[float] = config.OVERPASS_RETRY_DELAYS,
        timeout: float = config.OVERPASS_TIMEOUT_SECONDS,
        prefer_healthy: bool = config.OVERPASS_PREFER_HEALTHY,
        metrics: Optional[RequestMetrics] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not endpoints:
            raise ConfigurationError("No Overpass endpoints configured")
        self.http = http_client
        self.endpoints = list(endpoints)
        self.retry_delays = tuple(float(d) for d in retry_delays)
        self.timeout = timeout
        self.prefer_healthy = prefer_healthy
        self.metrics = metrics
        self._sleep = sleep
        self._clock = clock
        self.health: Dict[str, EndpointHealth] = {url: EndpointHealth(url) for url in self.endpoints}

    def ordered_endpoints(self) -> List[str]:
        if not self.prefer_healthy:
            return list(self.endpoints)
        # Stable: healthy endpoints keep their priority order ahead of failing ones.
        return sorted(self.endpoints, key=lambda url: not self.health[url].healthy)

    def query(self, tag_filter: TagFilter, origin: GeoPoint, radius_m: float) -> List[Dict[str, Any]]:
        ql = build_tag_query(tag_filter, origin, radius_m)
        logger.debug("Overpass query: %s", ql)
        return self.run(ql)

    def run(self, ql: str) -> List[Dict[str, Any]]:
        state = FailoverState(self.ordered_endpoints(), self.retry_delays)
        last_error: Optional[UpstreamError] = None
        current_endpoint: Optional[str] = None

        while not state.exhausted:
            endpoint = state.endpoint
            if current_endpoint is not None and endpoint != current_endpoint:
                logger.warning("Failing over to Overpass endpoint %s", endpoint)
                if self.metrics is not None:
                    self.metrics.inc_failover("poi")
            current_endpoint = endpoint

            if state.delay > 0:
                self._sleep(state.delay)
            try:
                response = self.http.post_form(endpoint, {"data": ql}, self.timeout, kind="poi")
                elements = parse_elements(response)
            except UpstreamError as exc:
                last_error = exc
                self._record_failure(endpoint, exc)
                if is_transient(exc) and state.has_retry_left:
                    logger.warning(
                        "Transient failure from %s (attempt %s): %s", endpoint, state.attempt, exc
                    )
                    if self.metrics is not None:
                        self.metrics.inc_retry("poi")
                    state.on_transient_failure()
                elif is_transient(exc):
                    logger.warning("Endpoint %s exhausted its attempts: %s", endpoint, exc)
                    state.on_transient_failure()
                else:
                    logger.warning("Endpoint %s failed: %s", endpoint, exc)
                    state.on_terminal_failure()
                continue

            self._record_success(endpoint)
            logger.info("Overpass endpoint %s returned %s elements", endpoint, len(elements))
            return elements

        if last_error is None:
            raise UpstreamError("No Overpass attempts were made")
        raise last_error

    def _record_success(self, endpoint: str) -> None:
        self.health[endpoint].last_success = self._clock()

    def _record_failure(self, endpoint: str, exc: UpstreamError) -> None:
        health = self.health[endpoint]
        health.last_failure = self._clock()
        health.last_error = str(exc)
