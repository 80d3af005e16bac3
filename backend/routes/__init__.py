# routes/__init__.py
"""
Blueprint registration helper
"""

def register_blueprints(app):
    """Register all application blueprints"""
    from routes.health import health_bp
    from routes.playlists import playlists_bp
    from routes.discogs import discogs_bp
    from routes.users import users_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(playlists_bp)
    app.register_blueprint(discogs_bp)
    app.register_blueprint(users_bp)
