"""
Event Stream Module
Carries pipeline events from an EnrichmentSequencer to a consumer

Two transports share one sequencer:
- Streaming: the sequencer runs on a worker thread and writes to an
  EventChannel; the request thread reads from it and flushes each event
  to the client as soon as it arrives
- Aggregating: the sequencer writes to a CollectingChannel in the request
  thread; once it finishes the events are folded into one PlaylistResult
"""

import time
import queue
import threading
import logging
from typing import Callable, Iterable, Iterator, List

from events import (
    CompleteEvent, ERROR_INTERNAL, ErrorEvent, PlaylistEvent, TrackUpdateEvent
)
from models import EnrichedTrack, PlaylistResult

logger = logging.getLogger(__name__)

# Seconds to wait for the worker once the stream ends
WORKER_JOIN_TIMEOUT = 1.0


class StreamClosedError(Exception):
    """Raised to the producer when the consumer has gone away"""


class EnrichmentFailed(Exception):
    """Raised when an aggregated run ended without completing"""
    def __init__(self, message: str, code: str = ERROR_INTERNAL):
        self.message = message
        self.code = code
        super().__init__(message)


class EventChannel:
    """
    Single-producer, single-consumer event queue.

    The producer calls emit() and wait() and must call finish() when done.
    The consumer iterates the channel and calls close() if it stops early;
    after that, the producer's next emit() or wait() raises StreamClosedError.
    """

    _DONE = object()

    def __init__(self):
        self._queue = queue.Queue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def emit(self, event) -> None:
        if self._closed.is_set():
            raise StreamClosedError("Consumer disconnected")
        self._queue.put(event)

    def wait(self, seconds: float) -> None:
        """Sleep for `seconds`, waking early if the consumer closes the channel"""
        if self._closed.wait(seconds):
            raise StreamClosedError("Consumer disconnected")

    def finish(self) -> None:
        """Producer side: no more events will follow"""
        self._queue.put(self._DONE)

    def close(self) -> None:
        """Consumer side: stop the producer"""
        self._closed.set()

    def __iter__(self) -> Iterator:
        while True:
            item = self._queue.get()
            if item is self._DONE:
                return
            yield item


class CollectingChannel:
    """Channel that records every event in memory for the aggregating transport"""

    def __init__(self, sleep: Callable[[float], None] = time.sleep):
        self.events: List = []
        self.sleep = sleep

    def emit(self, event) -> None:
        self.events.append(event)

    def wait(self, seconds: float) -> None:
        if seconds > 0:
            self.sleep(seconds)

    def finish(self) -> None:
        pass


def stream_events(sequencer, playlist_id: str, encode: Callable) -> Iterator[str]:
    """
    Run a sequencer on a worker thread and yield encoded frames as they arrive

    Closing this generator (the client disconnected) closes the channel, so
    the worker stops at its next emit or pacing wait instead of finishing
    the playlist for nobody.

    Args:
        sequencer: EnrichmentSequencer for this request
        playlist_id: Spotify playlist id
        encode: Function turning an event into one wire frame
    """
    channel = EventChannel()
    worker = threading.Thread(
        target=sequencer.run,
        args=(playlist_id, channel),
        daemon=True,
        name=f"Enrichment-{playlist_id}"
    )
    worker.start()
    logger.debug(f"Enrichment worker started for playlist {playlist_id}")

    drained = False
    try:
        for event in channel:
            yield encode(event)
        drained = True
    finally:
        if not drained:
            logger.info(f"Stream for playlist {playlist_id} closed before the run finished")
        channel.close()
        worker.join(timeout=WORKER_JOIN_TIMEOUT)
        if worker.is_alive():
            logger.warning(f"Enrichment worker for playlist {playlist_id} still running after the stream ended")


def aggregate_events(events: Iterable) -> PlaylistResult:
    """
    Fold a finished run's events into the final playlist result

    Raises:
        EnrichmentFailed: If the run emitted an error or never completed
    """
    result = None
    completed = False

    for event in events:
        if isinstance(event, ErrorEvent):
            raise EnrichmentFailed(event.message, event.code)
        if isinstance(event, PlaylistEvent):
            result = PlaylistResult(
                playlist=event.playlist,
                tracks=[EnrichedTrack(t.track, t.record) for t in event.tracks]
            )
        elif isinstance(event, TrackUpdateEvent):
            # Positions disambiguate a track that appears twice in a playlist
            if result is None or not 0 <= event.position < len(result.tracks):
                raise EnrichmentFailed(f"Unexpected update for track {event.track_id}")
            enriched = result.tracks[event.position]
            if enriched.track.id != event.track_id or enriched.record is not None:
                raise EnrichmentFailed(f"Unexpected update for track {event.track_id}")
            enriched.record = event.record
        elif isinstance(event, CompleteEvent):
            completed = True

    if result is None or not completed:
        raise EnrichmentFailed("Enrichment run did not complete")
    return result


def run_aggregated(sequencer, playlist_id: str, sleep: Callable[[float], None] = time.sleep) -> PlaylistResult:
    """
    Run a sequencer to completion in the calling thread and return the result

    Raises:
        EnrichmentFailed: If the run was aborted
    """
    channel = CollectingChannel(sleep=sleep)
    sequencer.run(playlist_id, channel)
    return aggregate_events(channel.events)
