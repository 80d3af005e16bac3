# routes/health.py
from flask import Blueprint, current_app, jsonify
import logging
import time

logger = logging.getLogger(__name__)
health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint reporting which upstream credentials are configured"""
    health_status = {
        'status': 'unknown',
        'config': None,
        'timestamp': time.time()
    }

    settings = current_app.config.get('SETTINGS')
    if settings is None:
        health_status['status'] = 'unhealthy'
        health_status['config'] = 'settings not initialized'
        return jsonify(health_status), 503

    missing = settings.missing_secrets()
    health_status['config'] = {
        'spotify': bool(settings.spotify_client_id and settings.spotify_client_secret),
        'discogs': bool(settings.discogs_token),
        'lookup_mode': settings.discogs_lookup_mode,
        'pacing_delay': settings.pacing_delay,
    }

    if missing:
        logger.warning(f"Health check: missing configuration {', '.join(missing)}")
        health_status['status'] = 'unhealthy'
        health_status['missing'] = missing
        return jsonify(health_status), 503

    health_status['status'] = 'healthy'
    return jsonify(health_status), 200
