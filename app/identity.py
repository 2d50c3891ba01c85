"""
Identity lookup and bearer-token authentication.

The lifecycle code never reads headers or sessions; it asks this module who a
user is and what role they hold.
"""
from datetime import datetime, timezone
from functools import wraps

import jwt
from flask import request, jsonify, current_app

from app import db
from app.errors import NotFound, Unauthorized
from app.models import User, Contractor, UserRole


def generate_token(user):
    """Generate JWT token for a user"""
    now = datetime.now(timezone.utc)
    payload = {
        'user_id': user.id,
        'role': user.role,
        'exp': now + current_app.config['JWT_ACCESS_TOKEN_EXPIRES'],
        'iat': now,
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET_KEY'],
        algorithm=current_app.config['JWT_ALGORITHM']
    )


def decode_token(token):
    """Decode and verify JWT token"""
    try:
        return jwt.decode(
            token,
            current_app.config['JWT_SECRET_KEY'],
            algorithms=[current_app.config['JWT_ALGORITHM']]
        )
    except jwt.ExpiredSignatureError:
        raise ValueError('Token has expired')
    except jwt.InvalidTokenError:
        raise ValueError('Invalid token')


def get_user(user_id):
    user = db.session.get(User, user_id) if user_id else None
    if user is None:
        raise NotFound('User not found')
    return user


def get_role(user_id):
    """Return the UserRole for ``user_id``; the users table is the only authority."""
    return UserRole(get_user(user_id).role)


def get_contractor_for_user(user_id):
    """Return the Contractor profile of a CONTRACTOR user, or raise Unauthorized."""
    if get_role(user_id) != UserRole.CONTRACTOR:
        raise Unauthorized('Contractor account required')
    contractor = Contractor.query.filter_by(user_id=user_id).first()
    if contractor is None:
        raise NotFound('Contractor profile not found')
    return contractor


def require_auth(f):
    """Decorator to require a valid bearer token; attaches user_id and user_role to the request"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Missing authorization header'}), 401

        try:
            token = auth_header.split(' ')[1] if ' ' in auth_header else auth_header
            payload = decode_token(token)
            user_id = payload['user_id']
        except (ValueError, IndexError, KeyError) as e:
            return jsonify({'error': str(e)}), 401

        # Role comes from the users table, not the token, so role changes apply immediately
        user = db.session.get(User, user_id)
        if user is None:
            return jsonify({'error': 'Unauthorized'}), 401

        request.user_id = user.id
        request.user_role = UserRole(user.role)

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Decorator to require specific role(s); stack under require_auth"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(request, 'user_role'):
                return jsonify({'error': 'Authentication required'}), 401

            if request.user_role not in roles:
                return jsonify({'error': 'Insufficient permissions'}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
