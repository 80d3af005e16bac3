"""
Playlistral API Backend
A Flask API that enriches Spotify playlists with Discogs release metadata
"""

from flask import Flask, jsonify, request
from flask_cors import CORS
import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Configuration
from config import ConfigurationError, Settings, configure_logging, init_app_config
from routes import register_blueprints

logger = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> Flask:
    """
    Create and configure the Flask application

    Args:
        settings: Settings to use (read from the environment if omitted)

    Returns:
        Configured Flask app
    """
    if settings is None:
        settings = Settings.from_env()

    configure_logging(settings.log_level)

    app = Flask(__name__)
    CORS(app)
    init_app_config(app, settings)

    missing = settings.missing_secrets()
    if missing:
        logger.warning(f"Missing configuration: {', '.join(missing)} - enrichment requests will fail")
    logger.info(f"Discogs lookup mode: {settings.discogs_lookup_mode} "
                f"(pacing {settings.pacing_delay}s between tracks)")
    logger.info(f"Flask app initialized in PID {os.getpid()}")

    register_blueprints(app)

    # ========================================================================
    # LANDING PAGE
    # ========================================================================

    @app.route('/')
    def landing_page():
        """List the available API endpoints"""
        return jsonify({
            'name': 'Playlistral API',
            'endpoints': [
                '/api/spotify/user?profileUrl=<url>',
                '/api/spotify/playlist/<playlist_id>',
                '/api/spotify/playlist/<playlist_id>/stream',
                '/api/spotify/playlist/<playlist_id>/export.csv',
                '/api/discogs/search?artist=<artist>&track=<track>&album=<album>',
                '/health',
            ]
        })

    # ========================================================================
    # ERROR HANDLING
    # ========================================================================

    @app.errorhandler(ConfigurationError)
    def handle_configuration_error(error):
        """Configuration faults abort a request before any upstream call"""
        logger.error(f"Configuration error on {request.path}: {error}")
        return jsonify({'error': str(error)}), 500

    # Request/response logging
    @app.before_request
    def log_request():
        """Log incoming requests"""
        logger.info(f"{request.method} {request.path}")

    @app.after_request
    def log_response(response):
        """Log response status"""
        logger.info(f"{request.method} {request.path} - {response.status_code}")
        return response

    return app


app = create_app()


if __name__ == '__main__':
    # Running directly with 'python app.py' (not gunicorn)
    logger.info("Starting Flask application directly (not gunicorn)...")
    app.run(debug=True, host='0.0.0.0', port=int(os.environ.get('PORT', 5001)), threaded=True)
