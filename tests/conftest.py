"""Pytest fixtures for Playlistral API tests"""
import json

import pytest

from config import Settings
from models import EnrichmentRecord, PlaylistInfo, Track


class FakeResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, status_code=200, payload=None, text=None, reason='OK'):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """
    Returns queued responses in order and records every request.

    A queued exception instance is raised instead of returned.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def request(self, method, url, **kwargs):
        self.calls.append({'method': method, 'url': url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSleep:
    """Sleep replacement that records the requested delays"""

    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


class FakeLoader:
    def __init__(self, playlist=None, tracks=None, error=None):
        self.playlist = playlist
        self.tracks = tracks or []
        self.error = error
        self.calls = []

    def load_tracks(self, playlist_id):
        self.calls.append(playlist_id)
        if self.error is not None:
            raise self.error
        return self.playlist, list(self.tracks)


class FakeLookup:
    """Returns records keyed by track title; unknown titles are not found"""

    def __init__(self, records=None, errors=None):
        self.records = records or {}
        self.errors = errors or {}
        self.calls = []

    def lookup(self, primary_artist, track_title, album=None):
        self.calls.append((primary_artist, track_title, album))
        if track_title in self.errors:
            raise self.errors[track_title]
        return self.records.get(track_title, EnrichmentRecord.not_found('No match found on Discogs'))


def make_track(position, title=None, track_id=None, artist='Test Artist', album='Test Album',
               duration_ms=215000):
    return Track(
        id=track_id or f"track{position}",
        title=title or f"Song {position}",
        artist_names=(artist,),
        primary_artist=artist,
        album=album,
        duration_ms=duration_ms,
        track_number=position + 1,
        position=position,
        external_url=f"https://open.spotify.com/track/track{position}",
    )


def make_playlist(total=0, playlist_id='pl123'):
    return PlaylistInfo(
        id=playlist_id,
        name='Test Playlist',
        description='For tests',
        owner='tester',
        image_url=None,
        total_tracks=total,
    )


def found_record(catalog_id=1, title='Test Artist - Test Album', year=1997,
                 genres=('Electronic',), styles=('House',)):
    return EnrichmentRecord(
        found=True,
        catalog_id=catalog_id,
        title=title,
        year=year,
        country='UK',
        genres=genres,
        styles=styles,
        labels=('Test Label',),
        uri=f"https://www.discogs.com/release/{catalog_id}",
    )


def spotify_item(index, name=None, artists=('Test Artist',), album='Test Album'):
    """Raw playlist item as returned by the Spotify playlist endpoint"""
    return {
        'added_at': '2024-01-31T10:00:00Z',
        'track': {
            'id': f"sp{index}",
            'name': name or f"Song {index}",
            'artists': [{'name': a} for a in artists],
            'album': {'name': album, 'images': [{'url': f"https://i.scdn.co/image/{index}"}]},
            'duration_ms': 200000 + index,
            'track_number': index + 1,
            'external_urls': {'spotify': f"https://open.spotify.com/track/sp{index}"},
        }
    }


def spotify_playlist_payload(items, next_url=None, playlist_id='pl123'):
    return {
        'id': playlist_id,
        'name': 'Test Playlist',
        'description': 'For tests',
        'owner': {'display_name': 'tester'},
        'images': [{'url': 'https://i.scdn.co/image/cover'}],
        'tracks': {
            'items': items,
            'next': next_url,
            'total': len(items),
        }
    }


@pytest.fixture
def settings():
    """Complete settings with every delay disabled"""
    return Settings(
        spotify_client_id='client-id',
        spotify_client_secret='client-secret',
        discogs_token='discogs-token',
        search_pacing_delay=0.0,
        detail_pacing_delay=0.0,
        detail_fetch_delay=0.0,
        throttle_backoff=0.0,
    )


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def app(settings, sleep):
    from app import create_app

    app = create_app(settings)
    app.config['TESTING'] = True
    app.config['PIPELINE_SLEEP'] = sleep
    return app


@pytest.fixture
def client(app):
    return app.test_client()
