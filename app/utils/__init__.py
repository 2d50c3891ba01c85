"""Utilities package"""
from .validators import validate_email, validate_postal_code, validate_choice, validate_password
from .helpers import sanitize_dict, parse_datetime, paginate_query

__all__ = [
    'validate_email',
    'validate_postal_code',
    'validate_choice',
    'validate_password',
    'sanitize_dict',
    'parse_datetime',
    'paginate_query',
]
