"""
Admin API routes.
Protected by role-based access (admin only).
"""
from functools import wraps

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy import func

from app import db
from app.errors import ValidationError
from app.identity import require_auth, require_role
from app.lifecycle import get_request, schedule_inspection, open_for_interest, transition
from app.models import RenovationRequest, InspectionInterest, Bid, Contractor, User, RequestStatus, UserRole
from app.utils import parse_datetime, paginate_query, validate_choice

admin_bp = Blueprint('admin', __name__)


def require_admin(f):
    """Wrap require_auth and additionally check that the user has admin role."""
    @wraps(f)
    @require_auth
    @require_role(UserRole.ADMIN)
    def wrapper(*args, **kwargs):
        return f(*args, **kwargs)
    return wrapper


@admin_bp.route('/stats', methods=['GET'])
@require_admin
def stats():
    """Request counts per status plus headline totals."""
    by_status = dict(
        db.session.query(RenovationRequest.status, func.count(RenovationRequest.id))
        .group_by(RenovationRequest.status)
        .all()
    )

    return jsonify({
        'requests_by_status': {status.value: by_status.get(status.value, 0) for status in RequestStatus},
        'total_requests': sum(by_status.values()),
        'total_bids': Bid.query.count(),
        'total_contractors': Contractor.query.count(),
        'total_customers': User.query.filter_by(role=UserRole.CUSTOMER.value).count(),
    }), 200


@admin_bp.route('/requests', methods=['GET'])
@require_admin
def list_requests():
    """
    List every renovation request
    GET /api/admin/requests?status=INSPECTION_PENDING&page=1&per_page=20
    """
    query = RenovationRequest.query

    status = request.args.get('status')
    if status:
        if not validate_choice(status, RequestStatus):
            raise ValidationError(f'Invalid status value: {status}')
        query = query.filter(RenovationRequest.status == status)

    query = query.order_by(RenovationRequest.created_at.desc())

    page = request.args.get('page', 1, type=int)
    per_page = min(
        request.args.get('per_page', current_app.config['ITEMS_PER_PAGE'], type=int),
        current_app.config['MAX_ITEMS_PER_PAGE'],
    )

    result = paginate_query(query, page, per_page)

    items = []
    for item in result['items']:
        data = item.to_dict(include_counts=True)
        data['customer'] = {
            'id': item.customer.id,
            'name': item.customer.name,
            'email': item.customer.email,
        } if item.customer else None
        items.append(data)
    result['items'] = items

    return jsonify(result), 200


@admin_bp.route('/requests/<request_id>/inspection-interests', methods=['GET'])
@require_admin
def list_inspection_interests(request_id):
    """Contractors who answered the inspection invite for one request."""
    renovation_request = get_request(request_id)

    interests = InspectionInterest.query.filter_by(request_id=renovation_request.id).all()
    result = []
    for interest in interests:
        data = interest.to_dict()
        data['contractor'] = {
            'id': interest.contractor.id,
            'business_name': interest.contractor.business_name,
            'email': interest.contractor.email,
            'phone': interest.contractor.phone,
        }
        result.append(data)

    return jsonify({'request_id': renovation_request.id, 'interests': result}), 200


@admin_bp.route('/requests/<request_id>/inspection-date', methods=['PATCH'])
@require_admin
def set_inspection_date(request_id):
    """
    Schedule the site inspection and fix the bidding window
    PATCH /api/admin/requests/:id/inspection-date
    Body: {
        "inspection_date": "2025-01-10T09:00:00Z",
        "notes": "Meet at side entrance",
        "bidding_duration_days": 7        # optional, 1-30
    }
    """
    data = request.get_json(silent=True) or {}
    inspection_date = parse_datetime(data.get('inspection_date'), 'inspection_date')

    duration = data.get('bidding_duration_days')
    if duration is not None:
        try:
            duration = int(duration)
        except (TypeError, ValueError):
            raise ValidationError('bidding_duration_days must be a whole number')

    renovation_request = schedule_inspection(request_id, inspection_date, data.get('notes'), duration)

    return jsonify({
        'message': 'Inspection scheduled successfully',
        'request': renovation_request.to_dict()
    }), 200


@admin_bp.route('/requests/<request_id>/open-for-interest', methods=['POST'])
@require_admin
def open_request_for_interest(request_id):
    """Invite contractors to the inspection without waiting for a first sign-up."""
    renovation_request = open_for_interest(request_id)

    return jsonify({
        'message': 'Request opened for inspection interest',
        'request': renovation_request.to_dict()
    }), 200


@admin_bp.route('/requests/<request_id>/status', methods=['PATCH'])
@require_admin
def update_request_status(request_id):
    """
    Move a request to a new status
    PATCH /api/admin/requests/:id/status
    Body: {"status": "COMPLETED"}

    Only the changes that need no extra input are accepted here; scheduling,
    cancellation and selection have their own endpoints.
    """
    data = request.get_json(silent=True) or {}
    if not data.get('status'):
        raise ValidationError('status is required')

    renovation_request = transition(request_id, data['status'])

    return jsonify({
        'message': 'Request status updated successfully',
        'request': renovation_request.to_dict()
    }), 200
