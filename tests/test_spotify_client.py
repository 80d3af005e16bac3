"""Tests for the Spotify client and playlist loader"""
import pytest
import requests

from http_client import RateLimitedFetcher
from playlist_loader import PlaylistLoader
from spotify_client import SPOTIFY_TOKEN_URL, SpotifyClient, SpotifyError, SpotifyNotFoundError
from conftest import FakeResponse, FakeSession, RecordingSleep, spotify_item, spotify_playlist_payload

TOKEN_RESPONSE = FakeResponse(200, {'access_token': 'tok', 'expires_in': 3600})


def make_client(*responses, client_id='id', client_secret='secret'):
    session = FakeSession(responses)
    fetcher = RateLimitedFetcher(session=session, backoff=0, sleep=RecordingSleep())
    return SpotifyClient(client_id, client_secret, fetcher=fetcher), session


class TestBearerToken:
    def test_token_is_cached(self):
        client, session = make_client(TOKEN_RESPONSE)

        assert client.get_bearer_token() == 'tok'
        assert client.get_bearer_token() == 'tok'

        assert len(session.calls) == 1
        assert session.calls[0]['url'] == SPOTIFY_TOKEN_URL
        assert session.calls[0]['data'] == {'grant_type': 'client_credentials'}
        assert session.calls[0]['headers']['Authorization'].startswith('Basic ')

    def test_missing_credentials(self):
        client, session = make_client(client_secret=None)

        with pytest.raises(SpotifyError):
            client.get_bearer_token()
        assert session.calls == []

    def test_rejected_credentials(self):
        client, _ = make_client(FakeResponse(401, {'error': 'invalid_client'}))

        with pytest.raises(SpotifyError):
            client.get_bearer_token()

    def test_network_failure(self):
        client, _ = make_client(requests.exceptions.Timeout('slow'))

        with pytest.raises(SpotifyError):
            client.get_bearer_token()


class TestGetPlaylist:
    def test_follows_next_pages(self):
        first = spotify_playlist_payload([spotify_item(0), spotify_item(1)],
                                         next_url='https://api.spotify.com/v1/playlists/pl123/tracks?offset=2')
        second = {'items': [spotify_item(2)], 'next': None}
        client, session = make_client(FakeResponse(200, first), FakeResponse(200, second))

        payload = client.get_playlist('pl123', token='tok')

        assert [i['track']['id'] for i in payload['tracks']['items']] == ['sp0', 'sp1', 'sp2']
        assert session.calls[0]['url'] == 'https://api.spotify.com/v1/playlists/pl123'
        assert session.calls[0]['headers'] == {'Authorization': 'Bearer tok'}
        assert session.calls[1]['url'].endswith('offset=2')

    def test_unknown_playlist(self):
        client, _ = make_client(FakeResponse(404, {'error': {'status': 404}}))

        with pytest.raises(SpotifyNotFoundError):
            client.get_playlist('missing', token='tok')

    @pytest.mark.parametrize('response', [
        FakeResponse(500, {'error': 'boom'}),
        FakeResponse(200, None, text='<html>'),
        FakeResponse(200, {'id': 'pl123'}),
    ])
    def test_upstream_failures(self, response):
        client, _ = make_client(response)

        with pytest.raises(SpotifyError) as excinfo:
            client.get_playlist('pl123', token='tok')
        assert not isinstance(excinfo.value, SpotifyNotFoundError)

    def test_throttled_twice(self):
        client, session = make_client(FakeResponse(429), FakeResponse(429))

        with pytest.raises(SpotifyError):
            client.get_playlist('pl123', token='tok')
        assert len(session.calls) == 2


def test_get_user_playlists():
    client, session = make_client(FakeResponse(200, {'items': [{'id': 'p1'}]}))

    data = client.get_user_playlists('some.user', token='tok')

    assert data == {'items': [{'id': 'p1'}]}
    assert session.calls[0]['url'] == 'https://api.spotify.com/v1/users/some.user/playlists'
    assert session.calls[0]['params'] == {'limit': 50}


class TestPlaylistLoader:
    def test_load_tracks_in_order(self):
        payload = spotify_playlist_payload([spotify_item(0), {'track': None}, spotify_item(2)])
        client, _ = make_client(TOKEN_RESPONSE, FakeResponse(200, payload))

        playlist, tracks = PlaylistLoader(client).load_tracks('pl123')

        assert playlist.id == 'pl123'
        assert [t.position for t in tracks] == [0, 1, 2]
        assert [t.id for t in tracks] == ['sp0', 'local:1', 'sp2']

    def test_empty_playlist(self):
        client, _ = make_client(TOKEN_RESPONSE, FakeResponse(200, spotify_playlist_payload([])))

        playlist, tracks = PlaylistLoader(client).load_tracks('pl123')

        assert tracks == []
        assert playlist.total_tracks == 0

    def test_malformed_item_is_upstream_error(self):
        payload = spotify_playlist_payload([spotify_item(0), 'garbage'])
        client, _ = make_client(TOKEN_RESPONSE, FakeResponse(200, payload))

        with pytest.raises(SpotifyError):
            PlaylistLoader(client).load_tracks('pl123')

    def test_credential_failure_propagates(self):
        client, session = make_client(FakeResponse(400, {'error': 'invalid_client'}))

        with pytest.raises(SpotifyError):
            PlaylistLoader(client).load_tracks('pl123')
        assert len(session.calls) == 1
