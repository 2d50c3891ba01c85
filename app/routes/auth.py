from flask import Blueprint, request, jsonify

import notifications
from app import db
from app.models import User, Contractor, UserRole
from app.identity import generate_token, require_auth
from app.utils import validate_email, validate_password

auth_bp = Blueprint('auth', __name__)

# Admin accounts are provisioned out of band, never self-registered
_SELF_SERVICE_ROLES = (UserRole.CUSTOMER.value, UserRole.CONTRACTOR.value)


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Register a new customer or contractor
    POST /api/auth/register
    Body: {
        "email": "user@example.com",
        "password": "password123",
        "name": "Jane Doe",
        "phone": "555-1234",
        "role": "CONTRACTOR",
        "business_name": "Doe Renovations",     # contractors only
        "business_number": "BN-1234",           # contractors only
        "service_areas": ["M5V", "M4C"],        # contractors only
        "specialties": ["KITCHEN"]              # contractors only
    }
    """
    data = request.get_json(silent=True) or {}

    required_fields = ['email', 'password', 'name']
    if not all(data.get(field) for field in required_fields):
        return jsonify({'error': 'Missing required fields'}), 400

    email = data['email'].lower().strip()
    if not validate_email(email):
        return jsonify({'error': 'Invalid email address'}), 400
    if not validate_password(data['password']):
        return jsonify({'error': 'Password must be at least 8 characters with a letter and a digit'}), 400

    role = (data.get('role') or UserRole.CUSTOMER.value).upper()
    if role not in _SELF_SERVICE_ROLES:
        return jsonify({'error': f'Invalid role. Must be one of: {", ".join(_SELF_SERVICE_ROLES)}'}), 400

    if role == UserRole.CONTRACTOR.value and not data.get('business_name'):
        return jsonify({'error': 'business_name is required for contractors'}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({'error': 'User with this email already exists'}), 400

    user = User(
        email=email,
        name=data['name'].strip(),
        phone=data.get('phone'),
        role=role,
    )
    user.set_password(data['password'])

    try:
        db.session.add(user)
        if role == UserRole.CONTRACTOR.value:
            db.session.add(Contractor(
                user=user,
                business_name=data['business_name'].strip(),
                business_number=data.get('business_number'),
                phone=data.get('phone'),
                service_areas=data.get('service_areas') or [],
                specialties=data.get('specialties') or [],
                years_experience=data.get('years_experience'),
            ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    notifications.send(user.email, 'welcome', {'name': user.name, 'role': user.role})

    return jsonify({
        'message': 'User registered successfully',
        'token': generate_token(user),
        'user': user.to_dict()
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Login user
    POST /api/auth/login
    Body: {"email": "user@example.com", "password": "password123"}
    """
    data = request.get_json(silent=True) or {}

    if not data.get('email') or not data.get('password'):
        return jsonify({'error': 'Email and password are required'}), 400

    user = User.query.filter_by(email=data['email'].lower().strip()).first()

    if not user or not user.check_password(data['password']):
        return jsonify({'error': 'Invalid credentials'}), 401

    return jsonify({
        'message': 'Login successful',
        'token': generate_token(user),
        'user': user.to_dict()
    }), 200


@auth_bp.route('/me', methods=['GET'])
@require_auth
def get_current_user():
    """
    Get current authenticated user
    GET /api/auth/me
    """
    user = db.session.get(User, request.user_id)

    result = user.to_dict()
    if user.contractor:
        result['contractor'] = user.contractor.to_dict()

    return jsonify(result), 200
