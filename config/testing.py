"""
Testing configuration for the Renovate backend
"""
import os
from datetime import timedelta

from config.settings import Config


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""

    TESTING = True
    DEBUG = False

    # Use in-memory SQLite for fast tests
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')

    JWT_SECRET_KEY = 'test-jwt-secret'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)

    # Disable email sending
    RESEND_API_KEY = ''
    SENDGRID_API_KEY = ''
    EMAIL_FROM = 'test@renovate.test'

    CRON_SECRET = 'test-cron-secret'

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    SENTRY_DSN = ''

    # CORS - allow local frontends in tests
    CORS_ORIGINS = ['http://localhost:5173', 'http://localhost:3000']
