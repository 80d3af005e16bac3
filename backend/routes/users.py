# routes/users.py
from flask import Blueprint, current_app, jsonify, request
import logging
import time

from config import get_settings
from enrichment import build_spotify_client
from models import UserPlaylist
from spotify_client import SpotifyError, SpotifyNotFoundError
from utils.helpers import extract_user_id, safe_strip

logger = logging.getLogger(__name__)
users_bp = Blueprint('users', __name__)


@users_bp.route('/api/spotify/user', methods=['GET'])
def get_user_playlists():
    """
    List a Spotify user's public playlists

    Query Parameters:
        profileUrl (required): e.g. https://open.spotify.com/user/{user_id}

    Returns:
        {userId, playlists}
    """
    profile_url = safe_strip(request.args.get('profileUrl'))
    if not profile_url:
        return jsonify({'error': 'Profile URL is required'}), 400

    user_id = extract_user_id(profile_url)
    if not user_id:
        return jsonify({'error': 'Invalid Spotify profile URL format'}), 400

    settings = get_settings()
    client = build_spotify_client(settings, sleep=current_app.config.get('PIPELINE_SLEEP', time.sleep))

    try:
        data = client.get_user_playlists(user_id)
        items = data.get('items') or []
        playlists = [UserPlaylist.from_spotify(item).to_dict() for item in items if item]
    except SpotifyNotFoundError:
        return jsonify({'error': 'User not found'}), 404
    except (SpotifyError, ValueError, TypeError) as e:
        logger.error(f"Spotify API error for user {user_id}: {e}")
        return jsonify({'error': 'Failed to fetch Spotify data'}), 500

    return jsonify({
        'userId': user_id,
        'playlists': playlists
    })
