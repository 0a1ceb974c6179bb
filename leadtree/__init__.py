"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints and the
error handlers that map service errors onto HTTP responses.
"""
import logging
from flask import Flask, jsonify

from leadtree.services.errors import NotFoundError, StoreError

logger = logging.getLogger('leadtree')


def _register_error_handlers(app):
    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({'error': str(e)}), 404

    @app.errorhandler(StoreError)
    def handle_store_error(e):
        logger.error("Upstream failure: %s", e)
        return jsonify({'error': 'Service temporarily unavailable'}), 503

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(500)
    def handle_internal_error(e):
        original = getattr(e, 'original_exception', None) or e
        logger.error("Unhandled error: %s", original, exc_info=original)
        return jsonify({'error': 'Internal server error'}), 500


def create_app():
    """Create and configure the Flask application."""
    from leadtree.logging_config import configure_logging
    from leadtree.database import import_models

    app = Flask(__name__)

    configure_logging(app)
    _register_error_handlers(app)

    # Register blueprints
    from leadtree.routes.health import bp as health_bp
    from leadtree.routes.leads import bp as leads_bp
    from leadtree.routes.redirect import bp as redirect_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(redirect_bp)

    # Import models so Base.metadata knows about them (required for SQLAlchemy).
    # Schema is managed by Alembic; no create_all() call.
    import_models()

    return app
