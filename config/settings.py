"""
Configuration settings for different environments
"""
import os
import logging
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _database_url():
    """Return DATABASE_URL with the legacy postgres:// scheme rewritten."""
    url = os.environ.get('DATABASE_URL', '')
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url or 'sqlite:///renovate.db'


def _require_in_production(var_name, default):
    """Return env var value. Outside development, warn loudly if still using default."""
    value = os.environ.get(var_name, '')
    if value:
        return value
    if os.environ.get('FLASK_ENV', 'development') != 'development' and default:
        logger.warning("%s is using an insecure default. Set it via environment variable!", var_name)
    return default


class Config:
    """Base configuration"""
    SECRET_KEY = _require_in_production('SECRET_KEY', 'dev-secret-key-change-in-production')

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT
    JWT_SECRET_KEY = _require_in_production('JWT_SECRET', 'dev-jwt-secret-change-in-production')
    JWT_ALGORITHM = 'HS256'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    API_PREFIX = '/api'

    # Pagination
    ITEMS_PER_PAGE = 20
    MAX_ITEMS_PER_PAGE = 100

    # Renovation requests
    POSTAL_CODE_COUNTRY = os.environ.get('POSTAL_CODE_COUNTRY', 'CA')

    # Bidding lifecycle
    BIDDING_WINDOW_DAYS = int(os.environ.get('BIDDING_WINDOW_DAYS', '7'))
    BIDDING_SWEEP_INTERVAL_HOURS = int(os.environ.get('BIDDING_SWEEP_INTERVAL_HOURS', '24'))

    # Shared secret for the external cron caller
    CRON_SECRET = os.environ.get('CRON_SECRET', '')

    # Email: Resend (preferred) or SendGrid (fallback)
    RESEND_API_KEY = os.environ.get('RESEND_API_KEY', '')
    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY', '')
    EMAIL_FROM = os.environ.get('EMAIL_FROM', 'notifications@renovateplatform.com')
    EMAIL_FROM_NAME = os.environ.get('EMAIL_FROM_NAME', 'Renovate Platform')

    # Rate limiting
    RATELIMIT_ENABLED = True

    # Error monitoring
    SENTRY_DSN = os.environ.get('SENTRY_DSN', '')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'max_overflow': 40,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }
