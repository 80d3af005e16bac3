"""
Playlist Loader

Resolves a playlist id into PlaylistInfo plus the ordered list of Tracks:
credential -> playlist payload -> typed records.
"""

import logging
from typing import List, Tuple

from models import PlaylistInfo, Track
from spotify_client import SpotifyClient, SpotifyError

logger = logging.getLogger(__name__)


class PlaylistLoader:
    """Primary-catalog track loader backed by SpotifyClient"""

    def __init__(self, client: SpotifyClient):
        self.client = client

    def load_tracks(self, playlist_id: str) -> Tuple[PlaylistInfo, List[Track]]:
        """
        Load a playlist and its tracks in playlist order

        No item is dropped: entries without playable media come back as
        placeholder Tracks.

        Raises:
            SpotifyNotFoundError: Unknown playlist
            SpotifyError: Credential failure, upstream failure or a malformed payload
        """
        token = self.client.get_bearer_token()
        payload = self.client.get_playlist(playlist_id, token)

        try:
            playlist = PlaylistInfo.from_spotify(payload)
            items = payload['tracks']['items']
            tracks = [Track.from_spotify_item(item, index) for index, item in enumerate(items)]
        except (ValueError, KeyError, TypeError) as e:
            raise SpotifyError(f"Malformed playlist payload: {e}") from e

        logger.info(f"Loaded playlist {playlist.id} ({playlist.name!r}) with {len(tracks)} tracks")
        return playlist, tracks
