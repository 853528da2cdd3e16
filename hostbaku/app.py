"""
Flask Web Application for HostBaku.
Serves the owner statement API for admins and property owners.
"""

from datetime import datetime

from flask import Flask, request, jsonify
from flask_cors import CORS

from hostbaku.common.config_loader import (
    get_config, get_database_url, get_flask_config, get_statement_settings,
)
from hostbaku.common.engine import create_db_engine, create_session_factory
from hostbaku.statements.errors import StatementError
from hostbaku.statements.renderer import StatementSettings


def create_app(db_url=None, test_config=None):
    """
    Create Flask application with all blueprints registered.

    Args:
        db_url: Database URL (optional, will use config loader if not provided)
        test_config: Mapping applied over the loaded Flask config. A
                     STATEMENTS key overrides the statements config section.

    Returns:
        Flask application
    """
    app = Flask(__name__)

    # Load Flask configuration from unified config
    app.config.update(get_flask_config())
    if test_config:
        app.config.update(test_config)

    # Store app config for access by blueprints
    app.app_config = get_config()

    statement_section = get_statement_settings().to_dict()
    statement_section.update(app.config.get('STATEMENTS') or {})
    app.statement_settings = StatementSettings.from_config(statement_section)

    # Build database URL from unified config
    if not db_url:
        db_url = get_database_url('backend')

    app.db_url = db_url

    # Database session factory
    _db_engine = None
    _session_factory = None

    def get_db_engine():
        nonlocal _db_engine, _session_factory
        if _db_engine is None:
            _db_engine = create_db_engine(app.db_url, app.app_config.database.backend)
            _session_factory = create_session_factory(_db_engine)
        return _db_engine

    def get_db_session():
        get_db_engine()
        return _session_factory()

    app.get_db_engine = get_db_engine
    app.get_db_session = get_db_session

    # Initialize CORS
    CORS(app, supports_credentials=True)

    # Initialize JWT auth for API routes
    from hostbaku.auth.jwt_auth import init_auth
    init_auth(app)

    # Track start time for uptime reporting
    app.web_started_at = datetime.now()

    # Initialize audit logging
    from hostbaku.utils.audit import setup_audit_logging
    setup_audit_logging(app)

    @app.errorhandler(StatementError)
    def handle_statement_error(error):
        return jsonify({'success': False, 'error': error.message}), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def handle_server_error(error):
        # Unhandled exceptions arrive here wrapped; log the original
        original = getattr(error, 'original_exception', None) or error
        app.logger.error(f"Unhandled error on {request.method} {request.path}: {original}", exc_info=original)
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    # Add security headers and prevent caching of API responses
    @app.after_request
    def add_security_headers(response):
        # Statements are private documents; nothing under /api/ is cacheable
        if '/api/' in request.path:
            response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
            response.headers['Pragma'] = 'no-cache'
            response.headers['Expires'] = '0'

        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"

        return response

    # Register blueprints
    from hostbaku.routes.main import main_bp
    from hostbaku.routes.admin import admin_bp
    from hostbaku.routes.owner import owner_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(owner_bp)

    return app


def run_app(host='0.0.0.0', port=5000, debug=False, db_url=None):
    """Run the Flask application."""
    app_config = get_config()
    app = create_app(db_url)

    # Get server settings from config
    flask_settings = app_config.app.flask
    if flask_settings:
        host = flask_settings.host or host
        port = flask_settings.port or port
        debug = flask_settings.debug if flask_settings.debug is not None else debug

    app.run(host=host, port=port, debug=debug)


if __name__ == '__main__':
    run_app(debug=True)
