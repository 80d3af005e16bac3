"""
Enrichment Sequencer

Drives one enrichment run for one playlist:

    idle -> loading_primary -> emitting_initial_batch -> enriching -> completed
                    \\                                        \\
                     +-> aborted                              +-> aborted / cancelled

Tracks are looked up strictly one at a time, in playlist order, with a fixed
pacing delay between lookups so the Discogs request-rate ceiling is respected.
A failed lookup only affects its own track. Primary-catalog failures abort
the whole run. If the consumer disconnects the run is cancelled at the next
emit or pacing wait.

Every state change is reported as a pipeline event written to a channel
(see event_stream.py); the sequencer knows nothing about the wire format.
"""

import time
import logging
from typing import Callable, Optional

from config import LOOKUP_MODE_DETAIL, Settings
from discogs_client import DiscogsClient
from discogs_lookup import DiscogsLookup, MSG_FAILED
from event_stream import StreamClosedError
from events import (
    CompleteEvent, ERROR_INTERNAL, ERROR_NOT_FOUND, ERROR_UPSTREAM, ErrorEvent,
    PlaylistEvent, Progress, StatusEvent, TrackUpdateEvent
)
from http_client import RateLimitedFetcher
from models import EnrichedTrack, EnrichmentRecord, Track
from playlist_loader import PlaylistLoader
from spotify_client import SpotifyClient, SpotifyError, SpotifyNotFoundError

logger = logging.getLogger(__name__)

# Run states
STATE_IDLE = 'idle'
STATE_LOADING_PRIMARY = 'loading_primary'
STATE_EMITTING_INITIAL_BATCH = 'emitting_initial_batch'
STATE_ENRICHING = 'enriching'
STATE_COMPLETED = 'completed'
STATE_ABORTED = 'aborted'
STATE_CANCELLED = 'cancelled'

MSG_FETCHING_PLAYLIST = 'Fetching playlist from Spotify...'
MSG_PLAYLIST_NOT_FOUND = 'Playlist not found'
MSG_PLAYLIST_FAILED = 'Failed to fetch playlist'


class EnrichmentSequencer:
    """
    Sequential enrichment of a playlist's tracks.

    One instance handles one run; build a new one per request.
    """

    def __init__(self, loader: PlaylistLoader, lookup: DiscogsLookup, pacing_delay: float,
                 logger: Optional[logging.Logger] = None):
        """
        Args:
            loader: Primary-catalog track loader
            lookup: Secondary-catalog lookup
            pacing_delay: Seconds to wait between consecutive track lookups
            logger: Optional logger instance (uses module logger if not provided)
        """
        self.loader = loader
        self.lookup = lookup
        self.pacing_delay = pacing_delay
        self.logger = logger or logging.getLogger(__name__)
        self.state = STATE_IDLE
        self.current = None

    def run(self, playlist_id: str, channel) -> str:
        """
        Run the pipeline, writing events to `channel`

        The channel is always finished when this returns, whatever the outcome.

        Args:
            playlist_id: Spotify playlist id
            channel: EventChannel or CollectingChannel

        Returns:
            Final state (completed, aborted or cancelled)
        """
        try:
            self._run(playlist_id, channel)
        except StreamClosedError:
            self.state = STATE_CANCELLED
            self.logger.info(f"Enrichment of playlist {playlist_id} cancelled: consumer disconnected "
                             f"(at track {self.current})")
        except Exception as e:
            self.logger.error(f"Enrichment of playlist {playlist_id} failed: {e}", exc_info=True)
            self._abort(channel, 'An error occurred while enriching the playlist', ERROR_INTERNAL)
        finally:
            channel.finish()
        return self.state

    def _run(self, playlist_id: str, channel) -> None:
        self.state = STATE_LOADING_PRIMARY
        channel.emit(StatusEvent(MSG_FETCHING_PLAYLIST))

        try:
            playlist, tracks = self.loader.load_tracks(playlist_id)
        except SpotifyNotFoundError as e:
            self.logger.info(f"Playlist {playlist_id} not found: {e}")
            self._abort(channel, MSG_PLAYLIST_NOT_FOUND, ERROR_NOT_FOUND)
            return
        except SpotifyError as e:
            self.logger.error(f"Failed to load playlist {playlist_id}: {e}")
            self._abort(channel, MSG_PLAYLIST_FAILED, ERROR_UPSTREAM)
            return

        self.state = STATE_EMITTING_INITIAL_BATCH
        channel.emit(PlaylistEvent(playlist, [EnrichedTrack(track) for track in tracks]))

        self.state = STATE_ENRICHING
        total = len(tracks)
        for index, track in enumerate(tracks):
            if index > 0:
                channel.wait(self.pacing_delay)

            self.current = index + 1
            channel.emit(StatusEvent(
                f'Getting Discogs data for "{track.title}"',
                Progress(current=index + 1, total=total)
            ))

            record = self._lookup_track(track)
            channel.emit(TrackUpdateEvent(track.id, record, track.position))

        self.state = STATE_COMPLETED
        channel.emit(CompleteEvent())
        self.logger.info(f"Enrichment of playlist {playlist_id} completed ({total} tracks)")

    def _lookup_track(self, track: Track) -> EnrichmentRecord:
        """Look up one track; any failure becomes a not-found record"""
        try:
            return self.lookup.lookup(track.primary_artist, track.title, track.album)
        except Exception as e:
            self.logger.error(f"Failed to fetch Discogs data for track {track.title!r}: {e}", exc_info=True)
            return EnrichmentRecord.not_found(MSG_FAILED)

    def _abort(self, channel, message: str, code: str) -> None:
        self.state = STATE_ABORTED
        try:
            channel.emit(ErrorEvent(message, code))
        except StreamClosedError:
            self.logger.debug(f"Could not report failure, consumer already gone: {message}")


def build_spotify_client(settings: Settings, sleep: Callable[[float], None] = time.sleep) -> SpotifyClient:
    """SpotifyClient with its own fetcher, configured from settings"""
    return SpotifyClient(
        settings.spotify_client_id,
        settings.spotify_client_secret,
        fetcher=RateLimitedFetcher(backoff=settings.throttle_backoff,
                                   timeout=settings.request_timeout, sleep=sleep)
    )


def build_discogs_lookup(settings: Settings, sleep: Callable[[float], None] = time.sleep,
                         mode: Optional[str] = None) -> DiscogsLookup:
    """DiscogsLookup with its own client and fetcher, configured from settings"""
    client = DiscogsClient(
        settings.discogs_token,
        user_agent=settings.discogs_user_agent,
        fetcher=RateLimitedFetcher(backoff=settings.throttle_backoff,
                                   timeout=settings.request_timeout, sleep=sleep)
    )
    return DiscogsLookup(
        client,
        mode=mode or settings.discogs_lookup_mode,
        detail_delay=settings.detail_fetch_delay,
        detail_candidates=settings.detail_candidates,
        sleep=sleep
    )


def build_sequencer(settings: Settings, sleep: Callable[[float], None] = time.sleep,
                    mode: Optional[str] = None) -> EnrichmentSequencer:
    """
    Construct a sequencer with fresh clients for one run

    Args:
        settings: Validated settings
        sleep: Function used for throttle backoff and the detail-fetch delay
        mode: Lookup mode override ('search' or 'detail')
    """
    mode = mode or settings.discogs_lookup_mode
    pacing_delay = settings.detail_pacing_delay if mode == LOOKUP_MODE_DETAIL else settings.search_pacing_delay
    return EnrichmentSequencer(
        PlaylistLoader(build_spotify_client(settings, sleep)),
        build_discogs_lookup(settings, sleep, mode),
        pacing_delay
    )
