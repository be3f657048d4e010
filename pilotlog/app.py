"""
Pilot Logbook Flask Application.

Main entry point for the web application. Initializes:
- Database schema
- API routes
- JSON error handlers

Usage:
    python -m pilotlog.app

Or with gunicorn:
    gunicorn "pilotlog.app:create_app()"
"""

import logging

from flask import Flask, jsonify
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError

from pilotlog.config import config
from pilotlog.models import init_db
from pilotlog.api import analytics_bp, audit_bp, auth_bp, flights_bp, schedules_bp

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app() -> Flask:
    """
    Application factory for Flask.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key
    app.config['MAX_CONTENT_LENGTH'] = config.uploads.max_content_length

    CORS(app)

    logger.info('Initializing database...')
    init_db()

    # Register API blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(flights_bp)
    app.register_blueprint(analytics_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(schedules_bp)

    if not config.aviationstack.is_configured:
        logger.warning('No AviationStack API key set (API_KEY); flight lookups will use mock data')

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        logger.error(f'Database error: {e}')
        return jsonify({'message': 'Database error'}), 500

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'message': 'Not found'}), 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return jsonify({'message': 'Internal server error'}), 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    logger.info(f'Starting pilot logbook API on http://localhost:{config.port}')

    app.run(
        host='0.0.0.0',
        port=config.port,
        debug=config.debug,
    )


if __name__ == '__main__':
    run_development_server()
