"""Access to the upstream results provider.

:class:`CachedFetcher` is the cache-aside HTTP layer: it returns parsed JSON
for a URL, consulting the cache store first. :class:`ResultsClient` knows the
provider's URL layout and cache keys and hands back typed records from
:mod:`archery.models`.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Tuple

import requests

from .cache import DEFAULT_TTL
from .errors import UpstreamFetchError
from .models import RawEventRoster, RawScores, RawTournament

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://resultsapi.herokuapp.com"
DEFAULT_TIMEOUT = 10  # seconds


class CachedFetcher:
    """Fetch JSON over HTTP, caching the body under a caller-chosen key."""

    def __init__(self, cache, session: Optional[requests.Session] = None,
                 ttl: int = DEFAULT_TTL, timeout: float = DEFAULT_TIMEOUT):
        self.cache = cache
        self.session = session or requests.Session()
        self.ttl = ttl
        self.timeout = timeout

    def get(self, url: str, cache_key: str) -> Any:
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("cache hit for %s", cache_key)
            return json.loads(cached)

        logger.info("cache miss for %s", cache_key)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise UpstreamFetchError(f"Request to {url} failed: {e}", url=url) from e
        if not response.ok:
            raise UpstreamFetchError(
                f"Failed to fetch {url}: {response.status_code} {response.reason}",
                url=url,
                status=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFetchError(f"Response from {url} is not JSON", url=url, status=response.status_code) from e

        self.cache.setex(cache_key, self.ttl, json.dumps(data))
        return data


def tournament_key(tournament_id: str) -> str:
    return f"tournament_{tournament_id}"


def event_key(event_id: str) -> str:
    return f"event_{event_id}"


def scores_key(event_id: str) -> str:
    return f"scores_{event_id}"


class ResultsClient:
    """Typed view over the provider's tournament and event resources."""

    def __init__(self, fetcher: CachedFetcher, base_url: str = DEFAULT_BASE_URL):
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")

    def tournament(self, tournament_id: str) -> RawTournament:
        url = f"{self.base_url}/tournaments/{tournament_id}"
        return RawTournament.from_json(self.fetcher.get(url, tournament_key(tournament_id)))

    def event_roster(self, event_id: str) -> RawEventRoster:
        url = f"{self.base_url}/events/{event_id}"
        return RawEventRoster.from_json(self.fetcher.get(url, event_key(event_id)))

    def event_scores(self, event_id: str) -> RawScores:
        url = f"{self.base_url}/events/{event_id}/scores"
        return RawScores.from_json(self.fetcher.get(url, scores_key(event_id)), event_id)

    def event_data(self, event_id: str) -> Tuple[RawEventRoster, RawScores]:
        """Fetch roster and scores for one event concurrently.

        Both requests are awaited; the first failure is re-raised.
        """
        with ThreadPoolExecutor(max_workers=2) as pool:
            roster_future = pool.submit(self.event_roster, event_id)
            scores_future = pool.submit(self.event_scores, event_id)
            return roster_future.result(), scores_future.result()


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "CachedFetcher",
    "ResultsClient",
    "tournament_key",
    "event_key",
    "scores_key",
]
