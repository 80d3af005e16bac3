"""
Rate-Limited HTTP Fetcher

Wraps a single outbound HTTP call with retry-on-throttle semantics:
- The request is issued once
- A throttle response (HTTP 429) is retried exactly once after a fixed backoff
- A second throttle response is handed back to the caller as the final outcome
- Any other response, good or bad, is returned immediately for the caller to judge
- Transport errors (requests.RequestException) propagate without retry

Used by SpotifyClient and DiscogsClient for all API interactions.
"""

import time
import logging
from typing import Callable, Iterable, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_THROTTLE_STATUSES = (429,)


class RateLimitedFetcher:
    """
    Issues HTTP requests through a requests.Session with a single bounded
    retry after a throttle response.
    """

    def __init__(self, session: Optional[requests.Session] = None, max_attempts: int = 2,
                 backoff: float = 2.5, throttle_statuses: Iterable[int] = DEFAULT_THROTTLE_STATUSES,
                 timeout: float = 10.0, sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the fetcher

        Args:
            session: requests.Session to use (a new one is created if omitted)
            max_attempts: Total attempts for a throttled request (including the first)
            backoff: Seconds to wait before retrying a throttled request
            throttle_statuses: Status codes that mean "too many requests"
            timeout: Per-request timeout in seconds, unless the caller passes one
            sleep: Function used to wait out the backoff
            logger: Optional logger instance (uses module logger if not provided)
        """
        self.session = session or requests.Session()
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff
        self.throttle_statuses = frozenset(throttle_statuses)
        self.timeout = timeout
        self.sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

        self.stats = {
            'api_calls': 0,
            'rate_limit_hits': 0,
            'rate_limit_waits': 0
        }

    def is_throttled(self, response: requests.Response) -> bool:
        """True if the response signals the caller exceeded its request rate"""
        return response.status_code in self.throttle_statuses

    def fetch(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Make an API request, retrying once if it is throttled

        Args:
            method: HTTP method ('GET', 'POST', etc.)
            url: URL to request
            **kwargs: Additional arguments passed to session.request

        Returns:
            The final response. It may still be a throttle response if every
            attempt was throttled; check with is_throttled().

        Raises:
            requests.exceptions.RequestException: For transport failures
        """
        kwargs.setdefault('timeout', self.timeout)

        attempt = 1
        while True:
            self.stats['api_calls'] += 1
            response = self.session.request(method, url, **kwargs)

            if not self.is_throttled(response):
                return response

            self.stats['rate_limit_hits'] += 1

            if attempt >= self.max_attempts:
                self.logger.warning(f"Rate limited on {method} {url} after {attempt} attempts, giving up")
                return response

            self.logger.warning(f"Rate limit hit (attempt {attempt}/{self.max_attempts}). "
                                f"Waiting {self.backoff}s before retrying")
            self.stats['rate_limit_waits'] += 1
            self.sleep(self.backoff)
            attempt += 1

    def get(self, url: str, **kwargs) -> requests.Response:
        return self.fetch('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        return self.fetch('POST', url, **kwargs)
