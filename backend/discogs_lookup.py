"""
Discogs Lookup

Resolves an artist / track / album tuple into zero-or-one EnrichmentRecord.

The first search result returned by Discogs is taken as the match. There is
no scoring or re-ranking, so a "found" record can belong to a different
release than the track's; callers treat matches as low-confidence.

Two lookup modes:
- search: one search request for the single best match
- detail: search for a few candidates, pause, then fetch the first
  candidate's release resource for fuller data

A lookup never raises for an expected failure (no results, throttling,
network errors, malformed payloads): those all come back as found=False.
"""

import time
import logging
from typing import Callable, Optional

import requests

from config import LOOKUP_MODE_DETAIL, LOOKUP_MODE_SEARCH, LOOKUP_MODES
from discogs_client import DiscogsClient, DiscogsError, DiscogsRateLimitError
from models import EnrichmentRecord
from search_utils import build_search_query

logger = logging.getLogger(__name__)

MSG_NO_MATCH = 'No match found on Discogs'
MSG_RATE_LIMITED = 'Rate limited'
MSG_FAILED = 'Discogs lookup failed'
MSG_MISSING_INPUT = 'Artist and track are required'


class DiscogsLookup:
    """Best-effort secondary-catalog lookup"""

    def __init__(self, client: DiscogsClient, mode: str = LOOKUP_MODE_SEARCH,
                 detail_delay: float = 0.4, detail_candidates: int = 5,
                 sleep: Callable[[float], None] = time.sleep, logger: Optional[logging.Logger] = None):
        """
        Args:
            client: DiscogsClient used for search and detail requests
            mode: 'search' or 'detail'
            detail_delay: Seconds to wait between the search and the detail fetch
            detail_candidates: Number of search candidates requested in detail mode
            sleep: Function used for the detail delay
            logger: Optional logger instance (uses module logger if not provided)
        """
        if mode not in LOOKUP_MODES:
            raise ValueError(f"Unknown lookup mode: {mode!r}")
        self.client = client
        self.mode = mode
        self.detail_delay = detail_delay
        self.detail_candidates = detail_candidates
        self.sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def lookup(self, primary_artist: str, track_title: str, album: Optional[str] = None) -> EnrichmentRecord:
        """
        Find Discogs metadata for a track

        Args:
            primary_artist: First credited artist
            track_title: Track title as listed on Spotify
            album: Album title (optional, narrows the search)

        Returns:
            EnrichmentRecord, found or not
        """
        if not primary_artist or not track_title:
            return EnrichmentRecord.not_found(MSG_MISSING_INPUT)

        query = build_search_query(primary_artist, track_title, album)
        if not query:
            return EnrichmentRecord.not_found(MSG_MISSING_INPUT)

        per_page = self.detail_candidates if self.mode == LOOKUP_MODE_DETAIL else 1

        try:
            results = self.client.search(query, per_page=per_page)
        except DiscogsRateLimitError:
            self.logger.warning(f"Rate limited when searching Discogs for: {query}")
            return EnrichmentRecord.not_found(MSG_RATE_LIMITED)
        except (DiscogsError, requests.exceptions.RequestException) as e:
            self.logger.warning(f"Failed to search Discogs for {query!r}: {e}")
            return EnrichmentRecord.not_found(MSG_FAILED)

        if not results:
            self.logger.info(f"No Discogs match for: {query}")
            return EnrichmentRecord.not_found(MSG_NO_MATCH)

        best_match = results[0]

        if self.mode == LOOKUP_MODE_DETAIL:
            record = self._lookup_detail(best_match, query)
            if record is not None:
                return record

        try:
            return EnrichmentRecord.from_search_result(best_match)
        except ValueError as e:
            self.logger.warning(f"Malformed Discogs search result for {query!r}: {e}")
            return EnrichmentRecord.not_found(MSG_FAILED)

    def _lookup_detail(self, search_result, query: str) -> Optional[EnrichmentRecord]:
        """
        Fetch the release behind a search result

        Returns:
            Record built from the release, or None to fall back to the search result
        """
        resource_url = search_result.get('resource_url') if isinstance(search_result, dict) else None
        if not resource_url:
            return None

        if self.detail_delay > 0:
            self.sleep(self.detail_delay)

        try:
            release = self.client.get_resource(resource_url)
            return EnrichmentRecord.from_release(release, search_result)
        except DiscogsRateLimitError:
            self.logger.warning(f"Rate limited fetching Discogs release for: {query}")
        except (DiscogsError, requests.exceptions.RequestException, ValueError) as e:
            self.logger.warning(f"Failed to fetch Discogs release {resource_url}: {e}")
        return None
