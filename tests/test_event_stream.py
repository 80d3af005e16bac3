"""Tests for the streaming and aggregating transports"""
import json
import threading

import pytest

from enrichment import EnrichmentSequencer, STATE_CANCELLED
from event_stream import (
    EnrichmentFailed, EventChannel, StreamClosedError, aggregate_events, run_aggregated, stream_events
)
from events import (
    CompleteEvent, ERROR_NOT_FOUND, ErrorEvent, PlaylistEvent, Progress, StatusEvent,
    TrackUpdateEvent, encode_sse
)
from models import EnrichedTrack, EnrichmentRecord
from spotify_client import SpotifyNotFoundError
from conftest import FakeLoader, FakeLookup, found_record, make_playlist, make_track


def encode(event):
    return encode_sse(json.dumps(event.to_dict()))


def decode(frame):
    assert frame.startswith('data: ') and frame.endswith('\n\n')
    return json.loads(frame[len('data: '):-2])


class TestEventChannel:
    def test_events_arrive_in_order_until_finish(self):
        channel = EventChannel()
        channel.emit('a')
        channel.emit('b')
        channel.finish()

        assert list(channel) == ['a', 'b']

    def test_emit_after_close_raises(self):
        channel = EventChannel()
        channel.close()

        assert channel.closed
        with pytest.raises(StreamClosedError):
            channel.emit('a')

    def test_wait_wakes_when_closed(self):
        channel = EventChannel()
        threading.Timer(0.05, channel.close).start()

        with pytest.raises(StreamClosedError):
            channel.wait(5)

    def test_wait_returns_when_open(self):
        EventChannel().wait(0)


@pytest.mark.parametrize('current,total,expected', [
    (1, 8, 13), (5, 8, 63), (8, 8, 100), (1, 40, 3), (1, 3, 33), (2, 3, 67), (0, 0, 100),
])
def test_progress_percentage_rounds_half_up(current, total, expected):
    assert Progress(current, total).percentage == expected


class TestStreamEvents:
    def test_frames_for_small_playlist(self):
        tracks = [make_track(i) for i in range(3)]
        sequencer = EnrichmentSequencer(
            FakeLoader(make_playlist(3), tracks),
            FakeLookup(records={'Song 0': found_record()}),
            pacing_delay=0
        )

        frames = [decode(f) for f in stream_events(sequencer, 'pl123', encode)]

        types = [f['type'] for f in frames]
        assert types.count('playlist') == 1
        assert types.count('track_update') == 3
        assert types.count('complete') == 1
        assert types[-1] == 'complete'
        assert frames[types.index('playlist')]['tracks'][0]['discogs'] is None
        assert [f['trackId'] for f in frames if f['type'] == 'track_update'] == ['track0', 'track1', 'track2']
        assert frames[types.index('track_update')]['discogs']['found'] is True

    def test_worker_is_joined_when_the_stream_ends(self):
        sequencer = EnrichmentSequencer(
            FakeLoader(make_playlist(2), [make_track(0), make_track(1)]), FakeLookup(), pacing_delay=0
        )

        frames = list(stream_events(sequencer, 'joined', encode))

        assert decode(frames[-1]) == {'type': 'complete'}
        assert not any(t.name == 'Enrichment-joined' for t in threading.enumerate())

    def test_error_is_terminal(self):
        sequencer = EnrichmentSequencer(
            FakeLoader(error=SpotifyNotFoundError('gone')), FakeLookup(), pacing_delay=0
        )

        frames = [decode(f) for f in stream_events(sequencer, 'missing', encode)]

        assert [f['type'] for f in frames] == ['status', 'error']
        assert frames[-1] == {'type': 'error', 'message': 'Playlist not found', 'code': 'not_found'}

    def test_closing_the_stream_cancels_the_worker(self):
        tracks = [make_track(i) for i in range(50)]
        lookup = FakeLookup()
        sequencer = EnrichmentSequencer(FakeLoader(make_playlist(50), tracks), lookup, pacing_delay=5)

        frames = stream_events(sequencer, 'cancel-me', encode)
        received = [decode(next(frames)) for _ in range(4)]
        frames.close()

        assert [f['type'] for f in received] == ['status', 'playlist', 'status', 'track_update']
        worker = next(t for t in threading.enumerate() if t.name == 'Enrichment-cancel-me')
        worker.join(timeout=2)
        assert not worker.is_alive()
        assert sequencer.state == STATE_CANCELLED
        assert len(lookup.calls) == 1


class TestAggregateEvents:
    def _batch(self, *tracks):
        return PlaylistEvent(make_playlist(len(tracks)), [EnrichedTrack(t) for t in tracks])

    def test_folds_updates_into_tracks(self):
        t0, t1 = make_track(0), make_track(1)
        record = found_record()
        events = [
            StatusEvent('Fetching playlist from Spotify...'),
            self._batch(t0, t1),
            StatusEvent('Getting Discogs data for "Song 0"', Progress(1, 2)),
            TrackUpdateEvent(t0.id, record, 0),
            TrackUpdateEvent(t1.id, EnrichmentRecord.not_found(), 1),
            CompleteEvent(),
        ]

        result = aggregate_events(events)

        assert [t.track.id for t in result.tracks] == ['track0', 'track1']
        assert result.tracks[0].record is record
        assert result.tracks[1].record.found is False

    def test_error_raises_with_code(self):
        with pytest.raises(EnrichmentFailed) as excinfo:
            aggregate_events([StatusEvent('x'), ErrorEvent('Playlist not found', ERROR_NOT_FOUND)])

        assert excinfo.value.code == ERROR_NOT_FOUND

    def test_incomplete_run_raises(self):
        with pytest.raises(EnrichmentFailed):
            aggregate_events([self._batch(make_track(0))])

    def test_update_for_unknown_track_raises(self):
        events = [self._batch(make_track(0)), TrackUpdateEvent('other', EnrichmentRecord.not_found(), 0),
                  CompleteEvent()]

        with pytest.raises(EnrichmentFailed):
            aggregate_events(events)

    def test_duplicate_update_raises(self):
        t0 = make_track(0)
        events = [self._batch(t0), TrackUpdateEvent(t0.id, EnrichmentRecord.not_found(), 0),
                  TrackUpdateEvent(t0.id, EnrichmentRecord.not_found(), 0), CompleteEvent()]

        with pytest.raises(EnrichmentFailed):
            aggregate_events(events)

    def test_playlist_event_is_not_mutated(self):
        batch = self._batch(make_track(0))
        aggregate_events([batch, TrackUpdateEvent('track0', found_record(), 0), CompleteEvent()])

        assert batch.tracks[0].record is None


def test_run_aggregated_paces_lookups():
    slept = []
    tracks = [make_track(i) for i in range(4)]
    sequencer = EnrichmentSequencer(FakeLoader(make_playlist(4), tracks), FakeLookup(), pacing_delay=0.6)

    result = run_aggregated(sequencer, 'pl123', sleep=slept.append)

    assert len(result.tracks) == 4
    assert all(t.record is not None for t in result.tracks)
    assert slept == [0.6, 0.6, 0.6]
