import logging
import os

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS

db = SQLAlchemy()

logger = logging.getLogger(__name__)


def _init_sentry(app):
    """Sentry error monitoring (optional -- only active when SENTRY_DSN is set)"""
    dsn = app.config.get('SENTRY_DSN')
    if not dsn:
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )


def _register_error_handlers(app):
    from app.errors import DomainError

    @app.errorhandler(DomainError)
    def handle_domain_error(e):
        db.session.rollback()
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(429)
    def ratelimit_handler(e):
        retry_after = e.get_headers().get("Retry-After") if hasattr(e, "get_headers") else None
        retry_after_seconds = int(retry_after) if retry_after else 60
        return jsonify({
            "error": "Too many requests. Please try again later.",
            "retry_after": retry_after_seconds,
        }), 429

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        logger.exception("Unhandled error: %s", e)
        return jsonify({'error': 'Internal server error'}), 500


def create_app(config_name=None):
    """Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    from config import config
    app.config.from_object(config.get(config_name, config['default']))

    _init_sentry(app)

    # Initialize extensions
    from extensions import limiter
    db.init_app(app)
    CORS(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True)
    limiter.init_app(app)

    # Import models so create_all() sees every table
    from app import models  # noqa: F401

    _register_error_handlers(app)

    from app.middleware import RequestIdMiddleware, register_input_sanitizer
    register_input_sanitizer(app)
    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)

    # Register blueprints
    from app.routes.auth import auth_bp
    from app.routes.requests import requests_bp
    from app.routes.contractor import contractor_bp
    from app.routes.admin import admin_bp
    from app.routes.cron import cron_bp

    api_prefix = app.config['API_PREFIX']
    app.register_blueprint(auth_bp, url_prefix=f'{api_prefix}/auth')
    app.register_blueprint(requests_bp, url_prefix=f'{api_prefix}/requests')
    app.register_blueprint(contractor_bp, url_prefix=f'{api_prefix}/contractor')
    app.register_blueprint(admin_bp, url_prefix=f'{api_prefix}/admin')
    app.register_blueprint(cron_bp, url_prefix=f'{api_prefix}/cron')

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy', 'service': 'renovate-backend'}, 200

    return app
