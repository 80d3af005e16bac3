"""
Configuration Module for Playlistral API
Handles logging setup, settings loading and Flask app initialization
"""

import os
import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional


LOOKUP_MODE_SEARCH = 'search'
LOOKUP_MODE_DETAIL = 'detail'
LOOKUP_MODES = (LOOKUP_MODE_SEARCH, LOOKUP_MODE_DETAIL)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ConfigurationError(Exception):
    """Raised when a required setting is missing or invalid"""


def configure_logging(level: str = 'INFO'):
    """
    Configure application logging with standard format

    Args:
        level: Log level name (e.g. 'INFO', 'DEBUG')

    Returns:
        Logger instance for the config module
    """
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT
    )
    return logging.getLogger(__name__)


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """
    Process-wide settings, built once at startup and handed to every
    collaborator that needs them.

    Delays are in seconds.
    """
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    discogs_token: Optional[str] = None
    discogs_user_agent: str = 'Playlistral/1.0'
    discogs_lookup_mode: str = LOOKUP_MODE_SEARCH
    search_pacing_delay: float = 0.6
    detail_pacing_delay: float = 0.4
    detail_fetch_delay: float = 0.4
    detail_candidates: int = 5
    throttle_backoff: float = 2.5
    request_timeout: float = 10.0
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Build settings from environment variables

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        environ = os.environ if environ is None else environ
        return cls(
            spotify_client_id=environ.get('SPOTIFY_CLIENT_ID') or None,
            spotify_client_secret=environ.get('SPOTIFY_CLIENT_SECRET') or None,
            discogs_token=environ.get('DISCOGS_TOKEN') or None,
            discogs_user_agent=environ.get('DISCOGS_USER_AGENT') or 'Playlistral/1.0',
            discogs_lookup_mode=(environ.get('DISCOGS_LOOKUP_MODE') or LOOKUP_MODE_SEARCH).strip().lower(),
            search_pacing_delay=_env_float(environ, 'DISCOGS_SEARCH_PACING_DELAY', 0.6),
            detail_pacing_delay=_env_float(environ, 'DISCOGS_DETAIL_PACING_DELAY', 0.4),
            detail_fetch_delay=_env_float(environ, 'DISCOGS_DETAIL_FETCH_DELAY', 0.4),
            detail_candidates=_env_int(environ, 'DISCOGS_DETAIL_CANDIDATES', 5),
            throttle_backoff=_env_float(environ, 'DISCOGS_THROTTLE_BACKOFF', 2.5),
            request_timeout=_env_float(environ, 'HTTP_REQUEST_TIMEOUT', 10.0),
            log_level=environ.get('LOG_LEVEL') or 'INFO',
        )

    @property
    def pacing_delay(self) -> float:
        """Delay enforced between consecutive track lookups for the active mode"""
        if self.discogs_lookup_mode == LOOKUP_MODE_DETAIL:
            return self.detail_pacing_delay
        return self.search_pacing_delay

    def missing_secrets(self) -> List[str]:
        """Names of required secrets that are not set"""
        required = {
            'SPOTIFY_CLIENT_ID': self.spotify_client_id,
            'SPOTIFY_CLIENT_SECRET': self.spotify_client_secret,
            'DISCOGS_TOKEN': self.discogs_token,
        }
        return [name for name, value in required.items() if not value]

    def validate(self) -> 'Settings':
        """
        Check that the settings are usable for an enrichment run

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: On missing secrets, an unknown lookup mode
                or a negative delay
        """
        missing = self.missing_secrets()
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

        if self.discogs_lookup_mode not in LOOKUP_MODES:
            raise ConfigurationError(
                f"DISCOGS_LOOKUP_MODE must be one of {', '.join(LOOKUP_MODES)}, "
                f"got {self.discogs_lookup_mode!r}"
            )

        delays = {
            'DISCOGS_SEARCH_PACING_DELAY': self.search_pacing_delay,
            'DISCOGS_DETAIL_PACING_DELAY': self.detail_pacing_delay,
            'DISCOGS_DETAIL_FETCH_DELAY': self.detail_fetch_delay,
            'DISCOGS_THROTTLE_BACKOFF': self.throttle_backoff,
        }
        for name, value in delays.items():
            if value < 0:
                raise ConfigurationError(f"{name} must not be negative")

        if self.detail_candidates < 1:
            raise ConfigurationError("DISCOGS_DETAIL_CANDIDATES must be at least 1")

        return self


def init_app_config(app, settings: Settings):
    """
    Initialize Flask app configuration

    This sets up:
    - Custom JSON provider for date formatting
    - The process-wide Settings instance

    Args:
        app: Flask application instance
        settings: Settings to attach to the app
    """
    from utils.json_provider import CustomJSONProvider
    app.json = CustomJSONProvider(app)
    app.config['SETTINGS'] = settings


def get_settings(app=None) -> Settings:
    """
    Return the app's validated settings

    Args:
        app: Flask app (defaults to current_app)

    Raises:
        ConfigurationError: If settings are missing or invalid
    """
    if app is None:
        from flask import current_app
        app = current_app
    settings = app.config.get('SETTINGS')
    if settings is None:
        raise ConfigurationError("Application settings not initialized")
    return settings.validate()
