from flask import Blueprint, request, jsonify, current_app

from app import db
from app.errors import Unauthorized, ValidationError
from app.identity import require_auth, require_role
from app.lifecycle import get_request, cancel_inspection, update_request, withdraw_request
from app.models import (
    RenovationRequest, Bid, UserRole, RequestStatus, Category, BudgetRange, Timeline,
)
from app.selection import select_contractor
from app.utils import validate_choice, validate_postal_code, paginate_query

requests_bp = Blueprint('requests', __name__)


REQUIRED_FIELDS = ('category', 'budget_range', 'timeline', 'postal_code', 'address', 'description')
CHOICE_FIELDS = (('category', Category), ('budget_range', BudgetRange), ('timeline', Timeline))
EDITABLE_FIELDS = REQUIRED_FIELDS + ('photos',)


def _owned_request(request_id):
    """Load a request and make sure the caller is its customer (or an admin)"""
    renovation_request = get_request(request_id)
    if request.user_role != UserRole.ADMIN and renovation_request.customer_id != request.user_id:
        raise Unauthorized('Request not found or unauthorized')
    return renovation_request


def _request_fields(data):
    """Validate and normalize whichever request fields are present in ``data``"""
    fields = {}

    for field, enum_cls in CHOICE_FIELDS:
        if field in data:
            if not validate_choice(data[field], enum_cls):
                choices = ', '.join(member.value for member in enum_cls)
                raise ValidationError(f'Invalid {field}. Must be one of: {choices}')
            fields[field] = data[field]

    if 'postal_code' in data:
        postal_code = str(data['postal_code'] or '').strip().upper()
        if not validate_postal_code(postal_code, current_app.config.get('POSTAL_CODE_COUNTRY', 'CA')):
            raise ValidationError('Invalid postal code')
        fields['postal_code'] = postal_code

    for field in ('address', 'description'):
        if field in data:
            value = str(data[field] or '').strip()
            if not value:
                raise ValidationError(f'{field} cannot be empty')
            fields[field] = value

    if 'photos' in data:
        photos = data['photos'] or []
        if not isinstance(photos, list):
            raise ValidationError('photos must be a list of file keys')
        fields['photos'] = photos

    return fields


@requests_bp.route('', methods=['POST'])
@require_auth
@require_role(UserRole.CUSTOMER)
def create_request():
    """
    Create a renovation request
    POST /api/requests
    Body: {
        "category": "KITCHEN",
        "budget_range": "RANGE_50_100K",
        "timeline": "WITHIN_3MONTHS",
        "postal_code": "M5V 3A8",
        "address": "123 King St W, Toronto",
        "description": "Full kitchen remodel",
        "photos": ["uploads/abc.jpg"]
    }
    """
    data = request.get_json(silent=True) or {}

    missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
    if missing:
        raise ValidationError(f'Missing required fields: {", ".join(missing)}')

    fields = _request_fields(data)
    fields.setdefault('photos', [])

    renovation_request = RenovationRequest(
        customer_id=request.user_id,
        status=RequestStatus.OPEN.value,
        **fields
    )

    try:
        db.session.add(renovation_request)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Renovation request %s created by %s", renovation_request.id, request.user_id)

    return jsonify({
        'message': 'Renovation request created successfully',
        'request': renovation_request.to_dict()
    }), 201


@requests_bp.route('/mine', methods=['GET'])
@require_auth
@require_role(UserRole.CUSTOMER)
def list_my_requests():
    """
    List the caller's renovation requests
    GET /api/requests/mine?status=BIDDING_CLOSED&page=1&per_page=20
    """
    query = RenovationRequest.query.filter_by(customer_id=request.user_id)

    status = request.args.get('status')
    if status:
        if not validate_choice(status, RequestStatus):
            raise ValidationError(f'Invalid status value: {status}')
        query = query.filter(RenovationRequest.status == status)

    query = query.order_by(RenovationRequest.created_at.desc())

    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', current_app.config['ITEMS_PER_PAGE'], type=int)

    result = paginate_query(query, page, per_page)
    result['items'] = [item.to_dict(include_counts=True) for item in result['items']]

    return jsonify(result), 200


@requests_bp.route('/<request_id>', methods=['GET'])
@require_auth
def get_renovation_request(request_id):
    """
    Get a single renovation request
    GET /api/requests/:id

    Contractors and admins may view any request; customers only their own.
    """
    if request.user_role == UserRole.CUSTOMER:
        renovation_request = _owned_request(request_id)
    else:
        renovation_request = get_request(request_id)

    return jsonify(renovation_request.to_dict(include_counts=True)), 200


@requests_bp.route('/<request_id>', methods=['PATCH'])
@require_auth
@require_role(UserRole.CUSTOMER)
def edit_renovation_request(request_id):
    """
    Edit a request that no contractor has picked up yet (status OPEN)
    PATCH /api/requests/:id
    Body: any of category, budget_range, timeline, postal_code, address, description, photos
    """
    data = request.get_json(silent=True) or {}
    unknown = sorted(set(data) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValidationError(f'Fields cannot be changed: {", ".join(unknown)}')

    renovation_request = update_request(request_id, request.user_id, _request_fields(data))

    return jsonify({
        'message': 'Renovation request updated successfully',
        'request': renovation_request.to_dict()
    }), 200


@requests_bp.route('/<request_id>', methods=['DELETE'])
@require_auth
@require_role(UserRole.CUSTOMER)
def withdraw_renovation_request(request_id):
    """
    Withdraw an OPEN request; it is kept as CLOSED
    DELETE /api/requests/:id
    """
    renovation_request = withdraw_request(request_id, request.user_id)

    return jsonify({
        'message': 'Renovation request withdrawn',
        'request': renovation_request.to_dict()
    }), 200


@requests_bp.route('/<request_id>/cancel-inspection', methods=['POST'])
@require_auth
@require_role(UserRole.CUSTOMER)
def cancel_request_inspection(request_id):
    """
    Cancel a scheduled site inspection
    POST /api/requests/:id/cancel-inspection
    """
    renovation_request = cancel_inspection(request_id, request.user_id)

    return jsonify({
        'message': 'Inspection cancelled successfully',
        'request': renovation_request.to_dict()
    }), 200


@requests_bp.route('/<request_id>/select-contractor', methods=['POST'])
@require_auth
@require_role(UserRole.CUSTOMER)
def select_request_contractor(request_id):
    """
    Pick the winning bid once bidding has closed
    POST /api/requests/:id/select-contractor
    Body: {"contractor_id": "uuid"}
    """
    data = request.get_json(silent=True) or {}
    contractor_id = data.get('contractor_id')
    if not contractor_id:
        raise ValidationError('contractor_id is required')

    renovation_request = select_contractor(request_id, request.user_id, contractor_id)

    return jsonify({
        'message': 'Contractor selected successfully',
        'request': renovation_request.to_dict()
    }), 200


@requests_bp.route('/<request_id>/bids', methods=['GET'])
@require_auth
@require_role(UserRole.CUSTOMER, UserRole.ADMIN)
def list_request_bids(request_id):
    """
    Compare the bids on a request
    GET /api/requests/:id/bids
    """
    renovation_request = _owned_request(request_id)

    bids = Bid.query.filter_by(request_id=renovation_request.id).order_by(Bid.total_amount.asc()).all()

    return jsonify({
        'request_id': renovation_request.id,
        'status': renovation_request.status,
        'bids': [bid.to_dict(include_contractor=True) for bid in bids]
    }), 200
