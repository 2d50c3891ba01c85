from flask import Blueprint, request, jsonify, current_app

from extensions import limiter
from app import db
from app.bidding import submit_bid, update_bid, withdraw_bid
from app.errors import ValidationError
from app.identity import require_auth, require_role, get_contractor_for_user
from app.lifecycle import record_inspection_interest, INTEREST_STATUSES
from app.models import Bid, InspectionInterest, RenovationRequest, RequestStatus, UserRole, Category
from app.utils import paginate_query, validate_choice

contractor_bp = Blueprint('contractor', __name__)


@contractor_bp.route('/requests', methods=['GET'])
@require_auth
@require_role(UserRole.CONTRACTOR)
def list_opportunities():
    """
    Requests a contractor can act on: inspection sign-up or open bidding
    GET /api/contractor/requests?category=KITCHEN&page=1
    """
    contractor = get_contractor_for_user(request.user_id)

    statuses = [status.value for status in INTEREST_STATUSES] + [RequestStatus.BIDDING_OPEN.value]
    query = RenovationRequest.query.filter(RenovationRequest.status.in_(statuses))

    category = request.args.get('category')
    if category:
        query = query.filter(RenovationRequest.category == category)

    query = query.order_by(RenovationRequest.created_at.desc())

    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', current_app.config['ITEMS_PER_PAGE'], type=int)
    result = paginate_query(query, page, per_page)

    bid_request_ids = {
        row.request_id for row in Bid.query.filter_by(contractor_id=contractor.id).with_entities(Bid.request_id)
    }
    items = []
    for item in result['items']:
        data = item.to_dict(exclude=['address'], include_counts=True)
        data['has_bid'] = item.id in bid_request_ids
        items.append(data)
    result['items'] = items

    return jsonify(result), 200


@contractor_bp.route('/inspection-interest', methods=['POST'])
@require_auth
@require_role(UserRole.CONTRACTOR)
def submit_inspection_interest():
    """
    Sign up (or back out) of a request's site inspection
    POST /api/contractor/inspection-interest
    Body: {"request_id": "uuid", "will_participate": true, "notes": "Available mornings"}
    """
    data = request.get_json(silent=True) or {}
    if not data.get('request_id'):
        raise ValidationError('request_id is required')
    if not isinstance(data.get('will_participate'), bool):
        raise ValidationError('will_participate must be true or false')

    contractor = get_contractor_for_user(request.user_id)
    interest = record_inspection_interest(
        data['request_id'], contractor, data['will_participate'], data.get('notes')
    )

    return jsonify({
        'message': 'Inspection interest recorded',
        'interest': interest.to_dict()
    }), 200


@contractor_bp.route('/inspection-interest', methods=['GET'])
@require_auth
@require_role(UserRole.CONTRACTOR)
def list_inspection_interests():
    """
    The caller's inspection sign-ups
    GET /api/contractor/inspection-interest
    """
    contractor = get_contractor_for_user(request.user_id)

    interests = (
        InspectionInterest.query
        .filter_by(contractor_id=contractor.id)
        .order_by(InspectionInterest.created_at.desc())
        .all()
    )

    result = []
    for interest in interests:
        data = interest.to_dict()
        req = interest.request
        data['request'] = {
            'id': req.id,
            'category': req.category,
            'postal_code': req.postal_code,
            'status': req.status,
            'inspection_date': req.inspection_date.isoformat() if req.inspection_date else None,
        }
        result.append(data)

    return jsonify({'interests': result}), 200


@contractor_bp.route('/bids', methods=['POST'])
@limiter.limit("20 per minute")
@require_auth
@require_role(UserRole.CONTRACTOR)
def create_bid():
    """
    Submit a bid on a request with open bidding
    POST /api/contractor/bids
    Body: {
        "request_id": "uuid",
        "labor_cost": 18000,
        "material_cost": 22000,
        "permit_cost": 1500,
        "disposal_cost": 800,
        "timeline_weeks": 6,
        "start_date": "2025-02-03",
        "included_items": "Cabinets, counters, backsplash",
        "excluded_items": "Appliances",
        "notes": "Price holds for 30 days"
    }
    """
    data = request.get_json(silent=True) or {}
    if not data.get('request_id'):
        raise ValidationError('request_id is required')

    contractor = get_contractor_for_user(request.user_id)
    bid = submit_bid(data['request_id'], contractor, data)

    return jsonify({
        'message': 'Bid submitted successfully',
        'bid': bid.to_dict()
    }), 201


@contractor_bp.route('/bids', methods=['GET'])
@require_auth
@require_role(UserRole.CONTRACTOR)
def list_my_bids():
    """
    The caller's bids with their request summaries
    GET /api/contractor/bids?status=PENDING
    """
    contractor = get_contractor_for_user(request.user_id)

    query = Bid.query.filter_by(contractor_id=contractor.id)
    status = request.args.get('status')
    if status:
        query = query.filter(Bid.status == status)

    result = []
    for bid in query.order_by(Bid.created_at.desc()).all():
        data = bid.to_dict()
        req = bid.request
        data['request'] = {
            'id': req.id,
            'category': req.category,
            'postal_code': req.postal_code,
            'status': req.status,
            'bidding_end_date': req.bidding_end_date.isoformat() if req.bidding_end_date else None,
        }
        result.append(data)

    return jsonify({'bids': result}), 200


@contractor_bp.route('/bids/<bid_id>', methods=['PATCH'])
@limiter.limit("20 per minute")
@require_auth
@require_role(UserRole.CONTRACTOR)
def edit_bid(bid_id):
    """
    Revise a pending bid while the bidding window is still open
    PATCH /api/contractor/bids/:id
    Body: any of the cost fields, timeline_weeks, start_date, included_items, excluded_items, notes
    """
    data = request.get_json(silent=True) or {}

    contractor = get_contractor_for_user(request.user_id)
    bid = update_bid(bid_id, contractor, data)

    return jsonify({
        'message': 'Bid updated successfully',
        'bid': bid.to_dict()
    }), 200


@contractor_bp.route('/bids/<bid_id>', methods=['DELETE'])
@limiter.limit("10 per minute")
@require_auth
@require_role(UserRole.CONTRACTOR)
def delete_bid(bid_id):
    """
    Withdraw a pending bid while the bidding window is still open
    DELETE /api/contractor/bids/:id
    """
    contractor = get_contractor_for_user(request.user_id)
    withdraw_bid(bid_id, contractor)

    return jsonify({'message': 'Bid withdrawn successfully'}), 200


@contractor_bp.route('/profile', methods=['GET'])
@require_auth
@require_role(UserRole.CONTRACTOR)
def get_profile():
    """
    The caller's business profile
    GET /api/contractor/profile
    """
    contractor = get_contractor_for_user(request.user_id)

    data = contractor.to_dict()
    data['email'] = contractor.email
    data['bid_count'] = contractor.bids.count()
    return jsonify({'contractor': data}), 200


@contractor_bp.route('/profile', methods=['PUT'])
@require_auth
@require_role(UserRole.CONTRACTOR)
def update_profile():
    """
    Update the caller's business profile
    PUT /api/contractor/profile
    Body: {
        "business_name": "Maple Kitchens",
        "business_number": "BN-1234",
        "phone": "416-555-0100",
        "service_areas": ["M5V", "M4C"],
        "specialties": ["KITCHEN", "BATHROOM"],
        "years_experience": 12
    }
    """
    data = request.get_json(silent=True) or {}
    contractor = get_contractor_for_user(request.user_id)

    if 'business_name' in data:
        business_name = str(data['business_name'] or '').strip()
        if not business_name:
            raise ValidationError('business_name cannot be empty')
        contractor.business_name = business_name

    for field in ('business_number', 'phone'):
        if field in data:
            setattr(contractor, field, str(data[field] or '').strip() or None)

    if 'service_areas' in data:
        areas = data['service_areas'] or []
        if not isinstance(areas, list) or not all(isinstance(area, str) for area in areas):
            raise ValidationError('service_areas must be a list of postal code prefixes')
        contractor.service_areas = [area.strip().upper() for area in areas if area.strip()]

    if 'specialties' in data:
        specialties = data['specialties'] or []
        if not isinstance(specialties, list) or not all(validate_choice(s, Category) for s in specialties):
            choices = ', '.join(member.value for member in Category)
            raise ValidationError(f'specialties must be a list of: {choices}')
        contractor.specialties = specialties

    if 'years_experience' in data:
        years = data['years_experience']
        if years is not None and (isinstance(years, bool) or not isinstance(years, int) or years < 0):
            raise ValidationError('years_experience must be a non-negative whole number')
        contractor.years_experience = years

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Contractor %s updated their profile", contractor.id)

    return jsonify({
        'message': 'Profile updated successfully',
        'contractor': contractor.to_dict()
    }), 200
