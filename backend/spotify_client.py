"""
Spotify API Client Infrastructure

Handles low-level Spotify API concerns:
- Client-credentials token management
- Playlist and user-playlist retrieval (with paging)
- Mapping of unsuccessful responses to SpotifyNotFoundError / SpotifyError

Rate limiting is delegated to RateLimitedFetcher. Used by PlaylistLoader
and the user playlist route.
"""

import time
import base64
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from http_client import RateLimitedFetcher

logger = logging.getLogger(__name__)

SPOTIFY_TOKEN_URL = 'https://accounts.spotify.com/api/token'
SPOTIFY_API_BASE = 'https://api.spotify.com/v1'

# Safety net against a `next` link that never ends
MAX_TRACK_PAGES = 200


class SpotifyError(Exception):
    """Raised when Spotify fails for any reason other than an unknown id"""


class SpotifyNotFoundError(SpotifyError):
    """Raised when Spotify reports an unknown playlist or user (HTTP 404)"""


class SpotifyClient:
    """
    Low-level Spotify Web API client using the client-credentials flow.
    """

    def __init__(self, client_id: str, client_secret: str,
                 fetcher: Optional[RateLimitedFetcher] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize Spotify Client

        Args:
            client_id: Spotify application client id
            client_secret: Spotify application client secret
            fetcher: RateLimitedFetcher used for every request
            logger: Optional logger instance (uses module logger if not provided)
        """
        self.logger = logger or logging.getLogger(__name__)
        self.client_id = client_id
        self.client_secret = client_secret
        self.fetcher = fetcher or RateLimitedFetcher(logger=self.logger)
        self.access_token = None
        self.token_expires = 0

    # ========================================================================
    # AUTHENTICATION
    # ========================================================================

    def get_bearer_token(self) -> str:
        """
        Get a valid Spotify access token (reuses existing if still valid)

        Raises:
            SpotifyError: If credentials are missing or the exchange fails
        """
        if self.access_token and time.time() < self.token_expires:
            return self.access_token

        if not self.client_id or not self.client_secret:
            raise SpotifyError("Spotify credentials not configured")

        credentials = f"{self.client_id}:{self.client_secret}"
        credentials_b64 = base64.b64encode(credentials.encode()).decode()

        try:
            response = self.fetcher.post(
                SPOTIFY_TOKEN_URL,
                headers={
                    'Authorization': f'Basic {credentials_b64}',
                    'Content-Type': 'application/x-www-form-urlencoded'
                },
                data={'grant_type': 'client_credentials'}
            )
        except requests.exceptions.RequestException as e:
            raise SpotifyError(f"Failed to get Spotify access token: {e}") from e

        if not response.ok:
            raise SpotifyError(f"Failed to get Spotify access token (HTTP {response.status_code})")

        try:
            data = response.json()
            token = data['access_token']
        except (ValueError, KeyError, TypeError) as e:
            raise SpotifyError("Malformed Spotify token response") from e

        # Store token and expiration time (with 60 second buffer)
        self.access_token = token
        try:
            expires_in = int(data.get('expires_in') or 3600)
        except (TypeError, ValueError):
            expires_in = 3600
        self.token_expires = time.time() + expires_in - 60

        self.logger.debug("Spotify authentication successful")
        return self.access_token

    # ========================================================================
    # REQUESTS
    # ========================================================================

    def _get_json(self, url: str, token: str, not_found_message: str,
                  params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self.fetcher.get(
                url,
                headers={'Authorization': f'Bearer {token}'},
                params=params
            )
        except requests.exceptions.RequestException as e:
            raise SpotifyError(f"Spotify request failed: {e}") from e

        if response.status_code == 404:
            raise SpotifyNotFoundError(not_found_message)
        if self.fetcher.is_throttled(response):
            raise SpotifyError("Spotify rate limit exceeded")
        if not response.ok:
            raise SpotifyError(f"Spotify request failed (HTTP {response.status_code})")

        try:
            data = response.json()
        except ValueError as e:
            raise SpotifyError("Spotify returned a non-JSON response") from e
        if not isinstance(data, dict):
            raise SpotifyError("Spotify returned an unexpected payload")
        return data

    def get_playlist(self, playlist_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        """
        Fetch a playlist with every track item

        Spotify returns the first page of items with the playlist; the
        remaining pages are followed through `tracks.next` and appended so
        the returned payload holds the full, ordered item list.

        Args:
            playlist_id: Spotify playlist id
            token: Bearer token (acquired if omitted)

        Returns:
            Raw playlist payload

        Raises:
            SpotifyNotFoundError: Unknown playlist
            SpotifyError: Any other failure
        """
        token = token or self.get_bearer_token()
        url = f"{SPOTIFY_API_BASE}/playlists/{quote(playlist_id, safe='')}"
        payload = self._get_json(url, token, 'Playlist not found')

        tracks = payload.get('tracks')
        if not isinstance(tracks, dict) or not isinstance(tracks.get('items'), list):
            raise SpotifyError("Playlist payload has no track items")

        next_url = tracks.get('next')
        pages = 1
        while next_url and pages < MAX_TRACK_PAGES:
            self.logger.debug(f"Fetching playlist page {pages + 1}: {next_url}")
            page = self._get_json(next_url, token, 'Playlist not found')
            items = page.get('items')
            if not isinstance(items, list):
                raise SpotifyError("Playlist page has no track items")
            tracks['items'].extend(items)
            next_url = page.get('next')
            pages += 1

        tracks['next'] = None
        return payload

    def get_user_playlists(self, user_id: str, token: Optional[str] = None, limit: int = 50) -> Dict[str, Any]:
        """
        Fetch a user's public playlists (first page)

        Raises:
            SpotifyNotFoundError: Unknown user
            SpotifyError: Any other failure
        """
        token = token or self.get_bearer_token()
        url = f"{SPOTIFY_API_BASE}/users/{quote(user_id, safe='')}/playlists"
        return self._get_json(url, token, 'User not found', params={'limit': limit})
