"""
Renovation request lifecycle.

Request lifecycle:
    OPEN -> INSPECTION_PENDING -> INSPECTION_SCHEDULED -> BIDDING_OPEN
         -> BIDDING_CLOSED -> CONTRACTOR_SELECTED -> COMPLETED
    INSPECTION_SCHEDULED -> INSPECTION_PENDING   (customer cancels the visit)
    any state except CLOSED -> CLOSED            (admin withdrawal, pending bids rejected)
    OPEN -> CLOSED                               (customer withdraws before any interest)

This module is the only writer of ``RenovationRequest.status``. Every
transition is validated against ``TRANSITIONS`` and then applied as a
conditional update ("set status to T where status is still S"), so two
concurrent callers acting on the same request cannot both win. The loser gets
``Conflict``. Writes belonging to one transition share one transaction.

Notifications go out after commit and are best-effort.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta

from flask import current_app

import notifications
from app import db
from app.errors import InvalidTransition, InvalidState, Unauthorized, NotFound, Conflict, ValidationError
from app.models import RenovationRequest, InspectionInterest, Bid, RequestStatus, BidStatus, utcnow, to_naive_utc

logger = logging.getLogger(__name__)

S = RequestStatus

# Valid transitions: {from_state: {allowed_to_states}}
TRANSITIONS = {
    S.OPEN: {S.INSPECTION_PENDING, S.CLOSED},
    S.INSPECTION_PENDING: {S.INSPECTION_SCHEDULED, S.CLOSED},
    S.INSPECTION_SCHEDULED: {S.INSPECTION_PENDING, S.BIDDING_OPEN, S.CLOSED},
    S.BIDDING_OPEN: {S.BIDDING_CLOSED, S.CLOSED},
    S.BIDDING_CLOSED: {S.CONTRACTOR_SELECTED, S.CLOSED},
    S.CONTRACTOR_SELECTED: {S.COMPLETED, S.CLOSED},
    S.COMPLETED: {S.CLOSED},
    S.CLOSED: set(),
}

# Contractors may answer the inspection invite while the visit is not yet done
INTEREST_STATUSES = (S.OPEN, S.INSPECTION_PENDING, S.INSPECTION_SCHEDULED)

MAX_BIDDING_DURATION_DAYS = 30


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------
def can_transition(current, target):
    return RequestStatus(target) in TRANSITIONS.get(RequestStatus(current), set())


def valid_transitions(current):
    return set(TRANSITIONS.get(RequestStatus(current), set()))


def validate_transition(current, target):
    """Raise InvalidTransition unless current -> target is in the table."""
    if not can_transition(current, target):
        allowed = ', '.join(sorted(s.value for s in valid_transitions(current))) or 'none'
        raise InvalidTransition(current, target, f'allowed from {RequestStatus(current).value}: [{allowed}]')


@contextmanager
def transaction():
    """Commit the session on success, roll it back on any error."""
    try:
        yield
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def get_request(request_id):
    renovation_request = db.session.get(RenovationRequest, request_id) if request_id else None
    if renovation_request is None:
        raise NotFound('Renovation request not found')
    return renovation_request


def apply_transition(renovation_request, target, patch=None):
    """
    Validate and write one transition inside the caller's transaction.

    The write only lands if the row is still in the status we read; otherwise
    Conflict is raised and nothing is written.
    """
    current = renovation_request.status_enum
    target = RequestStatus(target)
    validate_transition(current, target)

    values = dict(patch or {})
    values['status'] = target.value
    rows = RenovationRequest.update_if(renovation_request.id, current, values)
    if rows == 0:
        raise Conflict(
            f'Request {renovation_request.id} is no longer {current.value}; '
            f'another update won the race to {target.value}'
        )

    logger.info("Request %s: %s -> %s", renovation_request.id, current.value, target.value)
    return renovation_request


def _now(now):
    return to_naive_utc(now) if now is not None else utcnow()


def _reload(renovation_request):
    db.session.refresh(renovation_request)
    return renovation_request


def compute_bidding_window(inspection_date, duration_days=None):
    """
    Bidding opens at midnight of the inspection day and runs ``duration_days``.

    Returns (bidding_start_date, bidding_end_date) as naive UTC datetimes.
    """
    if duration_days is None:
        duration_days = current_app.config.get('BIDDING_WINDOW_DAYS', 7)
    if not 1 <= int(duration_days) <= MAX_BIDDING_DURATION_DAYS:
        raise ValidationError(f'Bidding duration must be between 1 and {MAX_BIDDING_DURATION_DAYS} days')

    if isinstance(inspection_date, datetime):
        day = to_naive_utc(inspection_date).date()
    elif isinstance(inspection_date, date):
        day = inspection_date
    else:
        raise ValidationError('inspection_date must be a date or datetime')

    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=int(duration_days))


def _participating_contractors(request_id):
    interests = InspectionInterest.query.filter_by(request_id=request_id, will_participate=True).all()
    return [interest.contractor for interest in interests if interest.contractor]


def _fmt(value):
    return value.strftime('%B %d, %Y') if value else None


# ---------------------------------------------------------------------------
# Inspection phase
# ---------------------------------------------------------------------------
def record_inspection_interest(request_id, contractor, will_participate, notes=None):
    """
    Create or update a contractor's inspection interest.

    The first participating contractor on an OPEN request moves it to
    INSPECTION_PENDING in the same transaction.
    """
    renovation_request = get_request(request_id)
    if renovation_request.status_enum not in INTEREST_STATUSES:
        raise InvalidState('Cannot participate in inspection for this project status')

    with transaction():
        interest = InspectionInterest.query.filter_by(
            request_id=renovation_request.id, contractor_id=contractor.id
        ).first()
        if interest is None:
            interest = InspectionInterest(request_id=renovation_request.id, contractor_id=contractor.id)
            db.session.add(interest)
        interest.will_participate = bool(will_participate)
        interest.notes = notes or None

        if will_participate and renovation_request.status_enum == S.OPEN:
            validate_transition(S.OPEN, S.INSPECTION_PENDING)
            rows = RenovationRequest.update_if(
                renovation_request.id, S.OPEN, {'status': S.INSPECTION_PENDING.value}
            )
            if rows:
                logger.info("Request %s: OPEN -> INSPECTION_PENDING (first interest from %s)",
                            renovation_request.id, contractor.id)
            else:
                # Someone else advanced it already; the interest row still stands
                logger.debug("Request %s left OPEN before interest from %s", renovation_request.id, contractor.id)

    return interest


def open_for_interest(request_id):
    """Admin: invite contractors to the inspection without waiting for a first interest."""
    renovation_request = get_request(request_id)
    with transaction():
        apply_transition(renovation_request, S.INSPECTION_PENDING)
    return _reload(renovation_request)


def schedule_inspection(request_id, inspection_date, notes=None, bidding_duration_days=None):
    """Admin: fix the site-visit date and derive the bidding window from it."""
    renovation_request = get_request(request_id)
    validate_transition(renovation_request.status_enum, S.INSPECTION_SCHEDULED)

    bidding_start, bidding_end = compute_bidding_window(inspection_date, bidding_duration_days)
    if isinstance(inspection_date, datetime):
        inspection_at = to_naive_utc(inspection_date)
    else:
        inspection_at = bidding_start

    with transaction():
        apply_transition(renovation_request, S.INSPECTION_SCHEDULED, {
            'inspection_date': inspection_at,
            'inspection_notes': notes or None,
            'bidding_start_date': bidding_start,
            'bidding_end_date': bidding_end,
        })

    renovation_request = _reload(renovation_request)
    for contractor in _participating_contractors(renovation_request.id):
        notifications.send(contractor.email, 'inspection_scheduled', {
            'contractor_name': contractor.business_name,
            'category': renovation_request.category,
            'address': renovation_request.address,
            'inspection_date': _fmt(renovation_request.inspection_date),
            'bidding_end_date': _fmt(renovation_request.bidding_end_date),
            'notes': renovation_request.inspection_notes,
        })
    return renovation_request


def cancel_inspection(request_id, acting_customer_id):
    """Customer: call off the scheduled visit and return the request to INSPECTION_PENDING."""
    renovation_request = get_request(request_id)
    if renovation_request.customer_id != acting_customer_id:
        raise Unauthorized('Only the request owner can cancel the inspection')
    validate_transition(renovation_request.status_enum, S.INSPECTION_PENDING)

    with transaction():
        apply_transition(renovation_request, S.INSPECTION_PENDING, {
            'inspection_date': None,
            'inspection_notes': None,
            'bidding_start_date': None,
            'bidding_end_date': None,
        })
        deleted = InspectionInterest.query.filter_by(request_id=renovation_request.id).delete(
            synchronize_session='fetch'
        )

    logger.info("Request %s: inspection cancelled by customer, %d interest(s) removed",
                renovation_request.id, deleted)
    return _reload(renovation_request)


# ---------------------------------------------------------------------------
# Bidding phase
# ---------------------------------------------------------------------------
def open_bidding(request_id, now=None):
    """INSPECTION_SCHEDULED -> BIDDING_OPEN once the bidding start date has arrived."""
    now = _now(now)
    renovation_request = get_request(request_id)
    validate_transition(renovation_request.status_enum, S.BIDDING_OPEN)
    if renovation_request.bidding_start_date is None or now < renovation_request.bidding_start_date:
        raise InvalidTransition(renovation_request.status, S.BIDDING_OPEN, 'bidding start date has not arrived')

    with transaction():
        apply_transition(renovation_request, S.BIDDING_OPEN)

    renovation_request = _reload(renovation_request)
    for contractor in _participating_contractors(renovation_request.id):
        notifications.send(contractor.email, 'bidding_started', {
            'contractor_name': contractor.business_name,
            'category': renovation_request.category,
            'address': renovation_request.address,
            'bidding_end_date': _fmt(renovation_request.bidding_end_date),
        })
    return renovation_request


def close_bidding(request_id, now=None):
    """BIDDING_OPEN -> BIDDING_CLOSED once the bidding end date has passed. Bids stay PENDING."""
    now = _now(now)
    renovation_request = get_request(request_id)
    validate_transition(renovation_request.status_enum, S.BIDDING_CLOSED)
    if renovation_request.bidding_end_date is None:
        raise InvalidTransition(renovation_request.status, S.BIDDING_CLOSED, 'no bidding end date is set')
    if now < renovation_request.bidding_end_date:
        raise InvalidTransition(renovation_request.status, S.BIDDING_CLOSED, 'bidding window is still open')

    with transaction():
        apply_transition(renovation_request, S.BIDDING_CLOSED)

    renovation_request = _reload(renovation_request)
    customer = renovation_request.customer
    notifications.send(customer.email if customer else None, 'bidding_closed', {
        'customer_name': customer.name if customer else None,
        'category': renovation_request.category,
        'bid_count': Bid.query.filter_by(request_id=renovation_request.id).count(),
    })
    return renovation_request


# ---------------------------------------------------------------------------
# Wrap-up
# ---------------------------------------------------------------------------
def complete_request(request_id):
    """Admin: the selected contractor finished the work."""
    renovation_request = get_request(request_id)
    with transaction():
        apply_transition(renovation_request, S.COMPLETED)
    return _reload(renovation_request)


def close_request(request_id):
    """Admin: withdraw the request from any state. Bids still PENDING are rejected."""
    renovation_request = get_request(request_id)
    with transaction():
        apply_transition(renovation_request, S.CLOSED)
        rejected = _reject_pending_bids(renovation_request.id)

    if rejected:
        logger.info("Request %s: %d pending bid(s) rejected on close", renovation_request.id, rejected)
    return _reload(renovation_request)


def _reject_pending_bids(request_id):
    return Bid.query.filter_by(request_id=request_id, status=BidStatus.PENDING.value).update(
        {'status': BidStatus.REJECTED.value, 'updated_at': utcnow()}, synchronize_session='fetch'
    )


# ---------------------------------------------------------------------------
# Customer edits before the inspection process starts
# ---------------------------------------------------------------------------
def _owned_open_request(request_id, acting_customer_id, action):
    renovation_request = get_request(request_id)
    if renovation_request.customer_id != acting_customer_id:
        raise Unauthorized(f'Only the request owner can {action} the request')
    if renovation_request.status_enum != S.OPEN:
        raise InvalidState(f'Cannot {action} a request in status {renovation_request.status}')
    return renovation_request


def update_request(request_id, acting_customer_id, fields):
    """Customer: edit the descriptive fields of a request that is still OPEN."""
    renovation_request = _owned_open_request(request_id, acting_customer_id, 'edit')
    if 'status' in fields:
        raise ValidationError('status cannot be changed here')
    if not fields:
        return renovation_request

    with transaction():
        rows = RenovationRequest.update_if(renovation_request.id, S.OPEN, fields)
        if rows == 0:
            raise Conflict(f'Request {renovation_request.id} is no longer OPEN')

    logger.info("Request %s edited by customer: %s", renovation_request.id, ', '.join(sorted(fields)))
    return _reload(renovation_request)


def withdraw_request(request_id, acting_customer_id):
    """Customer: take an OPEN request off the market. The row is kept, in CLOSED."""
    renovation_request = _owned_open_request(request_id, acting_customer_id, 'withdraw')
    with transaction():
        apply_transition(renovation_request, S.CLOSED)
    return _reload(renovation_request)


def transition(request_id, target, now=None):
    """
    Admin status change by target name.

    Targets that need extra input or a specific actor (a date, a chosen
    contractor, the owning customer) are refused here and must go through
    their own operation.
    """
    try:
        target = RequestStatus(target)
    except ValueError:
        raise ValidationError(f'Invalid status value: {target}')

    renovation_request = get_request(request_id)
    current = renovation_request.status_enum

    if target == S.INSPECTION_PENDING and current == S.OPEN:
        return open_for_interest(request_id)
    if target == S.BIDDING_OPEN:
        return open_bidding(request_id, now)
    if target == S.BIDDING_CLOSED:
        return close_bidding(request_id, now)
    if target == S.COMPLETED:
        return complete_request(request_id)
    if target == S.CLOSED:
        return close_request(request_id)

    validate_transition(current, target)
    raise InvalidTransition(current, target, 'use the dedicated operation for this change')
