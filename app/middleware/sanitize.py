"""
Input sanitization (XSS / injection prevention)
"""
from flask import request

from app.utils.helpers import sanitize_dict

# Cron calls carry no body and are skipped outright
_SANITIZE_SKIP_PREFIXES = ("/api/cron/",)


def register_input_sanitizer(app):
    """HTML-escape every string value in incoming JSON bodies before handlers see them."""

    @app.before_request
    def sanitize_json_input():
        if request.path.startswith(_SANITIZE_SKIP_PREFIXES) or not request.is_json:
            return None

        raw = request.get_json(silent=True)
        if raw is None:
            return None  # Malformed JSON; the route handler reports it.

        # Replace the parsed JSON cache so downstream get_json() calls
        # return the clean values.
        sanitized = sanitize_dict(raw)
        request._cached_json = (sanitized, sanitized)
        return None
