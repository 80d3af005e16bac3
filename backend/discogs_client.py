"""
Discogs API Client

Handles low-level Discogs API concerns:
- Token authentication and User-Agent headers
- Release search and resource (detail) retrieval
- Mapping of throttled / unsuccessful / malformed responses to exceptions

Rate limiting is delegated to RateLimitedFetcher. Used by DiscogsLookup.
"""

import logging
from typing import Any, Dict, List, Optional

from http_client import RateLimitedFetcher

logger = logging.getLogger(__name__)

DISCOGS_API_BASE = 'https://api.discogs.com'
DISCOGS_SEARCH_URL = f'{DISCOGS_API_BASE}/database/search'


class DiscogsError(Exception):
    """Raised when a Discogs request fails or returns an unusable payload"""


class DiscogsRateLimitError(DiscogsError):
    """Raised when Discogs is still throttling after the allowed retry"""


class DiscogsClient:
    """
    Low-level Discogs database API client.

    Transport failures (requests.RequestException) are not wrapped; callers
    treat them the same as DiscogsError.
    """

    def __init__(self, token: str, user_agent: str = 'Playlistral/1.0',
                 fetcher: Optional[RateLimitedFetcher] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize Discogs Client

        Args:
            token: Discogs personal access token
            user_agent: User-Agent sent with every request (Discogs requires one)
            fetcher: RateLimitedFetcher used for every request
            logger: Optional logger instance (uses module logger if not provided)
        """
        if not token:
            raise ValueError("Discogs token required")
        self.logger = logger or logging.getLogger(__name__)
        self.token = token
        self.user_agent = user_agent
        self.fetcher = fetcher or RateLimitedFetcher(logger=self.logger)

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'User-Agent': self.user_agent,
            'Authorization': f'Discogs token={self.token}',
        }

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self.fetcher.get(url, headers=self.headers, params=params)

        if self.fetcher.is_throttled(response):
            raise DiscogsRateLimitError(f"Discogs rate limit exceeded for {url}")
        if not response.ok:
            raise DiscogsError(f"Discogs request failed (HTTP {response.status_code}: {response.reason})")

        try:
            data = response.json()
        except ValueError as e:
            raise DiscogsError("Discogs returned a non-JSON response") from e
        if not isinstance(data, dict):
            raise DiscogsError("Discogs returned an unexpected payload")
        return data

    def search(self, query: str, per_page: int = 1) -> List[Dict[str, Any]]:
        """
        Search releases, best match first

        Args:
            query: Free-text query
            per_page: Number of candidates to request

        Returns:
            List of raw search result dicts (possibly empty)

        Raises:
            DiscogsRateLimitError: Throttled on every attempt
            DiscogsError: Any other unsuccessful or malformed response
        """
        data = self._get_json(DISCOGS_SEARCH_URL, params={
            'q': query,
            'type': 'release',
            'per_page': per_page,
        })
        results = data.get('results')
        if not isinstance(results, list):
            raise DiscogsError("Discogs search response has no results list")
        return results

    def get_resource(self, resource_url: str) -> Dict[str, Any]:
        """
        Fetch a resource by its API url (e.g. a release's resource_url)

        Raises:
            DiscogsRateLimitError: Throttled on every attempt
            DiscogsError: Any other unsuccessful or malformed response
        """
        if not resource_url or not resource_url.startswith(DISCOGS_API_BASE):
            raise DiscogsError(f"Not a Discogs API url: {resource_url!r}")
        return self._get_json(resource_url)
