"""
Helper utilities
"""
import html
from datetime import datetime

from app.errors import ValidationError


def sanitize_dict(data):
    """Recursively walk a dict/list structure and HTML-escape all string values.

    Non-string leaves (int, float, bool, None) are returned unchanged.
    """
    if isinstance(data, dict):
        return {key: sanitize_dict(value) for key, value in data.items()}
    if isinstance(data, list):
        return [sanitize_dict(item) for item in data]
    if isinstance(data, str):
        return html.escape(data, quote=True)
    return data


def parse_datetime(value, field='date'):
    """
    Parse an ISO-8601 date or datetime string ("2025-01-10" or "2025-01-10T09:30:00Z")

    Raises:
        ValidationError: if the string is missing or malformed
    """
    if not value:
        raise ValidationError(f'{field} is required')
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f'Invalid {field} format. Use ISO-8601, e.g. 2025-01-10T09:00:00Z')


def paginate_query(query, page=1, per_page=20):
    """Helper to paginate SQLAlchemy queries"""
    page = max(1, page)
    per_page = min(100, max(1, per_page))  # Cap at 100 items per page

    paginated = query.paginate(page=page, per_page=per_page, error_out=False)

    return {
        'items': paginated.items,
        'total': paginated.total,
        'page': page,
        'per_page': per_page,
        'pages': paginated.pages,
        'has_next': paginated.has_next,
        'has_prev': paginated.has_prev
    }
