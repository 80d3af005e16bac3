# utils/helpers.py
import re
from typing import Optional

SPOTIFY_PLAYLIST_URL_PATTERN = re.compile(r'/playlist/([A-Za-z0-9]+)')
SPOTIFY_PLAYLIST_URI_PATTERN = re.compile(r'^spotify:playlist:([A-Za-z0-9]+)$')
SPOTIFY_USER_URL_PATTERN = re.compile(r'/user/([^/?#]+)')
SPOTIFY_ID_PATTERN = re.compile(r'^[A-Za-z0-9]+$')


def safe_strip(value):
    """Safely strip a string value, handling None"""
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    return value


def parse_optional_int(value) -> Optional[int]:
    """
    Parse an optional integer query argument

    Returns:
        int, or None for a missing/blank value

    Raises:
        ValueError: If the value is present but not an integer
    """
    value = safe_strip(value)
    if value is None:
        return None
    return int(value)


def extract_user_id(profile_url: str) -> Optional[str]:
    """
    Extract the user id from a Spotify profile URL

    Supports https://open.spotify.com/user/{user_id} with or without a query string.
    """
    if not profile_url:
        return None
    match = SPOTIFY_USER_URL_PATTERN.search(profile_url)
    return match.group(1) if match else None


def extract_playlist_id(value: str) -> Optional[str]:
    """
    Accept a bare playlist id, a playlist URL or a spotify:playlist: URI
    and return the id
    """
    value = safe_strip(value)
    if not value:
        return None
    match = SPOTIFY_PLAYLIST_URI_PATTERN.match(value)
    if match:
        return match.group(1)
    match = SPOTIFY_PLAYLIST_URL_PATTERN.search(value)
    if match:
        return match.group(1)
    if SPOTIFY_ID_PATTERN.match(value):
        return value
    return None
