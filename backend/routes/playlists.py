# routes/playlists.py
"""
Playlist API Routes

Enrich a Spotify playlist with Discogs metadata:
- /api/spotify/playlist/<id>             one JSON response once every track is enriched
- /api/spotify/playlist/<id>/stream      server-sent events as each track is enriched
- /api/spotify/playlist/<id>/export.csv  enriched, filtered CSV download
"""
import time
import logging
from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context

from config import LOOKUP_MODES, get_settings
from enrichment import build_sequencer
from event_stream import EnrichmentFailed, run_aggregated, stream_events
from events import ERROR_NOT_FOUND, encode_sse
from track_filters import TrackFilter, collect_genres, collect_styles, filter_tracks, tracks_to_csv
from utils.helpers import parse_optional_int, safe_strip

logger = logging.getLogger(__name__)
playlists_bp = Blueprint('playlists', __name__)


def _pipeline_sleep():
    """Sleep function for pacing and backoff (PIPELINE_SLEEP lets tests skip real waits)"""
    return current_app.config.get('PIPELINE_SLEEP', time.sleep)


def _lookup_mode_arg():
    """
    Read the optional ?mode= override

    Returns:
        (mode, error_response) - exactly one is None
    """
    mode = safe_strip(request.args.get('mode'))
    if mode is None:
        return None, None
    mode = mode.lower()
    if mode not in LOOKUP_MODES:
        return None, (jsonify({'error': f"mode must be one of {', '.join(LOOKUP_MODES)}"}), 400)
    return mode, None


def _failure_response(error: EnrichmentFailed):
    if error.code == ERROR_NOT_FOUND:
        return jsonify({'error': 'Playlist not found'}), 404
    return jsonify({'error': 'Failed to fetch playlist data'}), 500


@playlists_bp.route('/api/spotify/playlist/<playlist_id>', methods=['GET'])
def get_playlist(playlist_id):
    """
    Enrich a playlist and return it in one response

    Nothing is sent until every track has been looked up, so the response
    time grows linearly with the number of tracks.

    Returns:
        {playlist, tracks, genres, styles} on success,
        404 {error} for an unknown playlist, 500 {error} otherwise
    """
    mode, error_response = _lookup_mode_arg()
    if error_response:
        return error_response

    settings = get_settings()
    sequencer = build_sequencer(settings, sleep=_pipeline_sleep(), mode=mode)

    try:
        result = run_aggregated(sequencer, playlist_id, sleep=_pipeline_sleep())
    except EnrichmentFailed as e:
        logger.error(f"Playlist {playlist_id} enrichment failed: {e.message}")
        return _failure_response(e)

    response = result.to_dict()
    response['genres'] = collect_genres(result.tracks)
    response['styles'] = collect_styles(result.tracks)
    return jsonify(response)


@playlists_bp.route('/api/spotify/playlist/<playlist_id>/stream', methods=['GET'])
def stream_playlist(playlist_id):
    """
    Enrich a playlist, streaming progress as server-sent events

    Each frame is `data: <JSON>` with a `type` of status, playlist,
    track_update, complete or error. The stream ends after complete or error.
    """
    mode, error_response = _lookup_mode_arg()
    if error_response:
        return error_response

    # Configuration problems are reported before the stream opens
    settings = get_settings()
    sequencer = build_sequencer(settings, sleep=_pipeline_sleep(), mode=mode)
    app_json = current_app.json

    def encode(event):
        return encode_sse(app_json.dumps(event.to_dict()))

    return Response(
        stream_with_context(stream_events(sequencer, playlist_id, encode)),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
        }
    )


@playlists_bp.route('/api/spotify/playlist/<playlist_id>/export.csv', methods=['GET'])
def export_playlist_csv(playlist_id):
    """
    Enrich a playlist and download it as CSV

    Query Parameters:
        genre (repeatable): keep tracks with any of these genres
        style (repeatable): keep tracks with any of these styles
        q: free-text filter on title, artists and album
        minYear / maxYear: inclusive release-year range
        mode: lookup mode override (search or detail)
    """
    mode, error_response = _lookup_mode_arg()
    if error_response:
        return error_response

    try:
        track_filter = TrackFilter(
            genres=[g for g in request.args.getlist('genre') if safe_strip(g)],
            styles=[s for s in request.args.getlist('style') if safe_strip(s)],
            query=safe_strip(request.args.get('q')) or '',
            min_year=parse_optional_int(request.args.get('minYear')),
            max_year=parse_optional_int(request.args.get('maxYear')),
        )
    except ValueError:
        return jsonify({'error': 'minYear and maxYear must be integers'}), 400

    settings = get_settings()
    sequencer = build_sequencer(settings, sleep=_pipeline_sleep(), mode=mode)

    try:
        result = run_aggregated(sequencer, playlist_id, sleep=_pipeline_sleep())
    except EnrichmentFailed as e:
        logger.error(f"Playlist {playlist_id} export failed: {e.message}")
        return _failure_response(e)

    tracks = filter_tracks(result.tracks, track_filter)
    logger.info(f"Exporting {len(tracks)} of {len(result.tracks)} tracks from playlist {playlist_id} "
                f"({track_filter.active_count} active filters)")

    filename = f"playlist-{result.playlist.id}.csv"
    return Response(
        tracks_to_csv(tracks),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'}
    )
