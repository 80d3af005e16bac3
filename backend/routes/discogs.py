# routes/discogs.py
from flask import Blueprint, current_app, jsonify, request
import logging
import time

from config import get_settings
from enrichment import build_discogs_lookup
from utils.helpers import safe_strip

logger = logging.getLogger(__name__)
discogs_bp = Blueprint('discogs', __name__)


@discogs_bp.route('/api/discogs/search', methods=['GET'])
def search_discogs():
    """
    Look up Discogs metadata for a single track

    Query Parameters:
        artist (required): primary artist
        track (required): track title
        album (optional): album title

    Returns:
        Enrichment record JSON. A missing match, throttling or an unreachable
        Discogs all come back as {found: false} with status 200.
    """
    artist = safe_strip(request.args.get('artist'))
    track = safe_strip(request.args.get('track'))
    album = safe_strip(request.args.get('album'))

    if not artist or not track:
        return jsonify({'error': 'Artist and track parameters are required'}), 400

    settings = get_settings()
    lookup = build_discogs_lookup(settings, sleep=current_app.config.get('PIPELINE_SLEEP', time.sleep))

    record = lookup.lookup(artist, track, album)
    if not record.found:
        logger.info(f"Discogs search for {artist} / {track}: {record.message}")
    return jsonify(record.to_dict())
