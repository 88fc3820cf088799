"""HTTP client with timeout handling, status classification and request metrics."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from . import config
from .errors import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

REQUEST_KINDS = ("geocode", "poi", "search")


@dataclass
class RequestMetrics:
    network_geocode: int = 0
    network_poi: int = 0
    network_search: int = 0
    cache_hits_geocode: int = 0
    retries_poi: int = 0
    failovers_poi: int = 0

    @property
    def network_total(self) -> int:
        return self.network_geocode + self.network_poi + self.network_search

    def inc_network(self, kind: str) -> None:
        if kind == "geocode":
            self.network_geocode += 1
        elif kind == "poi":
            self.network_poi += 1
        elif kind == "search":
            self.network_search += 1
        else:
            raise ValueError(f"Unknown request kind: {kind}")

    def inc_cache_hit(self, kind: str) -> None:
        if kind == "geocode":
            self.cache_hits_geocode += 1
        else:
            raise ValueError(f"Unknown request kind: {kind}")

    def inc_retry(self, kind: str) -> None:
        if kind == "poi":
            self.retries_poi += 1
        else:
            raise ValueError(f"Unknown request kind: {kind}")

    def inc_failover(self, kind: str) -> None:
        if kind == "poi":
            self.failovers_poi += 1
        else:
            raise ValueError(f"Unknown request kind: {kind}")


class HttpClient:
    """Single-attempt JSON transport; retry policy belongs to the caller."""

    def __init__(
        self,
        user_agent: Optional[str] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.user_agent = user_agent or config.user_agent()
        self.metrics = metrics
        self.session = requests.Session()

    def get_json(
        self,
        url: str,
        params: Dict[str, Any],
        timeout: float,
        kind: str,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        headers = self._headers(extra_headers)
        self._count(kind)
        try:
            resp = self.session.get(url, params=params, headers=headers, timeout=timeout)
        except requests.Timeout as exc:
            raise UpstreamTimeoutError(
                f"Request to {url} timed out after {timeout}s", url=url
            ) from exc
        except requests.RequestException as exc:
            raise UpstreamError(
                f"Request to {url} failed: {exc.__class__.__name__}", url=url
            ) from exc
        return self._decode(resp, url)

    def post_form(
        self,
        url: str,
        data: Dict[str, Any],
        timeout: float,
        kind: str,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        headers = self._headers(extra_headers)
        self._count(kind)
        try:
            resp = self.session.post(url, data=data, headers=headers, timeout=timeout)
        except requests.Timeout as exc:
            raise UpstreamTimeoutError(
                f"Request to {url} timed out after {timeout}s", url=url
            ) from exc
        except requests.RequestException as exc:
            raise UpstreamError(
                f"Request to {url} failed: {exc.__class__.__name__}", url=url
            ) from exc
        return self._decode(resp, url)

    def _headers(self, extra_headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }
        if extra_headers:
            headers.update(extra_headers)
        return headers

    def _count(self, kind: str) -> None:
        if self.metrics is not None:
            self.metrics.inc_network(kind)

    def _decode(self, resp: requests.Response, url: str) -> Any:
        status = resp.status_code
        if not 200 <= status < 300:
            body = (getattr(resp, "text", "") or "")[:300]
            if status in config.TRANSIENT_STATUS_CODES:
                logger.warning("HTTP %s from %s", status, url)
            else:
                logger.error("HTTP %s from %s", status, url)
            raise UpstreamError(f"HTTP {status} from {url}: {body}", status_code=status, url=url)
        try:
            return resp.json()
        except ValueError as exc:
            logger.error("Non-JSON response from %s", url)
            raise UpstreamError(f"Non-JSON response from {url}", status_code=status, url=url) from exc


def is_transient(exc: UpstreamError) -> bool:
    """True for rate limiting and gateway timeouts; client-side timeouts are terminal."""
    return exc.status_code in config.TRANSIENT_STATUS_CODES
