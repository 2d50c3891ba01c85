"""
Bid submission and the time-driven bidding sweeps.

The sweeps are stateless: each run re-queries the candidates, and each
candidate is driven through the lifecycle in its own transaction. A failure on
one request is logged and counted; the rest of the sweep carries on. Running
a sweep twice, or two sweeps at once, is harmless because the conditional
update lets exactly one writer move each request.
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError

import notifications
from app import db
from app import lifecycle
from app.errors import DomainError, InvalidState, Conflict, NotFound, Unauthorized, ValidationError
from app.models import (
    Bid, InspectionInterest, RenovationRequest, RequestStatus, BidStatus, utcnow, to_naive_utc,
)

logger = logging.getLogger(__name__)

COST_FIELDS = ('labor_cost', 'material_cost', 'permit_cost', 'disposal_cost')
TEXT_FIELDS = ('included_items', 'excluded_items', 'notes')

# Numeric(12, 2) columns
MAX_AMOUNT = Decimal('9999999999.99')


# ---------------------------------------------------------------------------
# Bid submission
# ---------------------------------------------------------------------------
def _money(value, field):
    if value in (None, ''):
        return Decimal('0')
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number')
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} must be a number')
    if not amount.is_finite():
        raise ValidationError(f'{field} must be a finite number')
    if amount < 0:
        raise ValidationError(f'{field} must not be negative')
    if amount > MAX_AMOUNT:
        raise ValidationError(f'{field} must not exceed {MAX_AMOUNT}')
    return amount.quantize(Decimal('0.01'))


def _timeline_weeks(value):
    """Whole, positive number of weeks. Booleans and fractional values are refused."""
    if isinstance(value, bool):
        raise ValidationError('timeline_weeks must be a whole number of weeks')
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError('timeline_weeks must be a whole number of weeks')
        value = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValidationError('timeline_weeks must be a whole number of weeks')
    if value <= 0:
        raise ValidationError('timeline_weeks must be positive')
    return value


def _text(value):
    return str(value or '').strip() or None


def _sum_costs(costs):
    total = sum(costs, Decimal('0'))
    if total > MAX_AMOUNT:
        raise ValidationError(f'The bid total must not exceed {MAX_AMOUNT}')
    return total


def calculate_bid_total(data):
    """Sum of the cost components, or ``total_amount`` when no breakdown is given."""
    if any(data.get(field) not in (None, '') for field in COST_FIELDS):
        return _sum_costs(_money(data.get(field), field) for field in COST_FIELDS)
    if data.get('total_amount') in (None, ''):
        raise ValidationError('Either a cost breakdown or total_amount is required')
    return _money(data.get('total_amount'), 'total_amount')


def _parse_start_date(value):
    if value in (None, ''):
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00')).date()
    except ValueError:
        raise ValidationError('start_date must be an ISO date')


def submit_bid(request_id, contractor, data, now=None):
    """Create the contractor's single bid on a request whose bidding window is open."""
    now = to_naive_utc(now) if now is not None else utcnow()
    renovation_request = lifecycle.get_request(request_id)

    if renovation_request.status_enum != RequestStatus.BIDDING_OPEN:
        raise InvalidState('Bids can only be submitted while bidding is open')
    if renovation_request.bidding_end_date is not None and now >= renovation_request.bidding_end_date:
        raise InvalidState('The bidding window for this request has ended')

    timeline_weeks = _timeline_weeks(data.get('timeline_weeks'))
    total_amount = calculate_bid_total(data)

    if Bid.query.filter_by(request_id=renovation_request.id, contractor_id=contractor.id).first():
        raise Conflict('You have already submitted a bid for this request')

    bid = Bid(
        request_id=renovation_request.id,
        contractor_id=contractor.id,
        labor_cost=_money(data.get('labor_cost'), 'labor_cost'),
        material_cost=_money(data.get('material_cost'), 'material_cost'),
        permit_cost=_money(data.get('permit_cost'), 'permit_cost'),
        disposal_cost=_money(data.get('disposal_cost'), 'disposal_cost'),
        total_amount=total_amount,
        timeline_weeks=timeline_weeks,
        start_date=_parse_start_date(data.get('start_date')),
        included_items=_text(data.get('included_items')),
        excluded_items=_text(data.get('excluded_items')),
        notes=_text(data.get('notes')),
        estimate_file_key=data.get('estimate_file_key'),
        status=BidStatus.PENDING.value,
    )

    try:
        with lifecycle.transaction():
            db.session.add(bid)
    except IntegrityError:
        # Unique (request_id, contractor_id) caught a concurrent duplicate
        raise Conflict('You have already submitted a bid for this request')

    logger.info("Bid %s submitted by contractor %s on request %s", bid.id, contractor.id, renovation_request.id)

    customer = renovation_request.customer
    notifications.send(customer.email if customer else None, 'new_bid', {
        'customer_name': customer.name if customer else None,
        'business_name': contractor.business_name,
        'category': renovation_request.category,
        'total_amount': total_amount,
        'timeline_weeks': timeline_weeks,
    })
    return bid


def _editable_bid(bid_id, contractor, now):
    """The caller's PENDING bid on a request that is still taking bids."""
    bid = db.session.get(Bid, bid_id) if bid_id else None
    if bid is None:
        raise NotFound('Bid not found')
    if bid.contractor_id != contractor.id:
        raise Unauthorized('Bid not found or unauthorized')
    if bid.status != BidStatus.PENDING.value:
        raise InvalidState(f'Cannot change a bid with status {bid.status}')

    renovation_request = bid.request
    if renovation_request.status_enum != RequestStatus.BIDDING_OPEN:
        raise InvalidState('Bids can only be changed while bidding is open')
    if renovation_request.bidding_end_date is not None and now >= renovation_request.bidding_end_date:
        raise InvalidState('The bidding window for this request has ended')
    return bid


def update_bid(bid_id, contractor, data, now=None):
    """
    Revise a PENDING bid before the bidding window ends.

    Cost fields not given keep their stored values and the total is recomputed
    from the merged breakdown. A bare ``total_amount`` is honoured only when
    the bid has no breakdown at all. Nothing is written unless every given
    field is valid.
    """
    now = to_naive_utc(now) if now is not None else utcnow()
    bid = _editable_bid(bid_id, contractor, now)
    changes = {}

    if any(field in data for field in COST_FIELDS):
        for field in COST_FIELDS:
            changes[field] = _money(data[field] if field in data else getattr(bid, field), field)
        changes['total_amount'] = _sum_costs(changes[field] for field in COST_FIELDS)
        if changes['total_amount'] <= 0:
            raise ValidationError('A bid needs a positive total')
    elif 'total_amount' in data:
        if any(getattr(bid, field) for field in COST_FIELDS):
            raise ValidationError('Update the cost breakdown instead of total_amount')
        changes['total_amount'] = calculate_bid_total({'total_amount': data['total_amount']})

    if 'timeline_weeks' in data:
        changes['timeline_weeks'] = _timeline_weeks(data['timeline_weeks'])
    if 'start_date' in data:
        changes['start_date'] = _parse_start_date(data['start_date'])
    for field in TEXT_FIELDS:
        if field in data:
            changes[field] = _text(data[field])
    if 'estimate_file_key' in data:
        changes['estimate_file_key'] = data['estimate_file_key'] or None

    with lifecycle.transaction():
        for field, value in changes.items():
            setattr(bid, field, value)

    logger.info("Bid %s updated by contractor %s: %s", bid.id, contractor.id, ', '.join(sorted(changes)) or 'no changes')
    return bid


def withdraw_bid(bid_id, contractor, now=None):
    """Delete a PENDING bid before the bidding window ends."""
    now = to_naive_utc(now) if now is not None else utcnow()
    bid = _editable_bid(bid_id, contractor, now)
    renovation_request = bid.request

    with lifecycle.transaction():
        db.session.delete(bid)

    logger.info("Bid %s withdrawn by contractor %s from request %s", bid_id, contractor.id, renovation_request.id)

    customer = renovation_request.customer
    notifications.send(customer.email if customer else None, 'bid_withdrawn', {
        'customer_name': customer.name if customer else None,
        'business_name': contractor.business_name,
        'category': renovation_request.category,
    })


# ---------------------------------------------------------------------------
# Sweeps
# ---------------------------------------------------------------------------
def _candidate_ids(query):
    return [row.id for row in query.with_entities(RenovationRequest.id).all()]


def _record_failure(request_id, action):
    db.session.rollback()
    logger.exception("Sweep: failed to %s for request %s", action, request_id)


def sweep_expired_bidding(now=None):
    """
    Close every BIDDING_OPEN request whose bidding_end_date is strictly in the past.

    Returns {"found": int, "closed": int, "failed": int}.
    """
    now = to_naive_utc(now) if now is not None else utcnow()
    candidates = _candidate_ids(RenovationRequest.query.filter(
        RenovationRequest.status == RequestStatus.BIDDING_OPEN.value,
        RenovationRequest.bidding_end_date < now,
    ))
    logger.info("Sweep at %s: %d request(s) with expired bidding", now.isoformat(), len(candidates))

    summary = {'found': len(candidates), 'closed': 0, 'failed': 0}
    for request_id in candidates:
        try:
            lifecycle.close_bidding(request_id, now)
            summary['closed'] += 1
        except DomainError as e:
            db.session.rollback()
            logger.warning("Sweep: could not close bidding for request %s: %s", request_id, e.message)
            summary['failed'] += 1
        except Exception:
            _record_failure(request_id, 'close bidding')
            summary['failed'] += 1

    logger.info("Bidding close sweep completed: %s", summary)
    return summary


def sweep_bidding_starts(now=None):
    """
    Open bidding on every INSPECTION_SCHEDULED request whose bidding start date has arrived.

    A request nobody signed up to inspect is withdrawn to CLOSED instead.
    Returns {"found": int, "opened": int, "closed": int, "failed": int}.
    """
    now = to_naive_utc(now) if now is not None else utcnow()
    candidates = _candidate_ids(RenovationRequest.query.filter(
        RenovationRequest.status == RequestStatus.INSPECTION_SCHEDULED.value,
        RenovationRequest.bidding_start_date <= now,
    ))
    logger.info("Sweep at %s: %d request(s) ready to start bidding", now.isoformat(), len(candidates))

    summary = {'found': len(candidates), 'opened': 0, 'closed': 0, 'failed': 0}
    for request_id in candidates:
        try:
            participants = InspectionInterest.query.filter_by(request_id=request_id, will_participate=True).count()
            if participants:
                lifecycle.open_bidding(request_id, now)
                summary['opened'] += 1
            else:
                lifecycle.close_request(request_id)
                logger.info("Closed request %s - no participating contractors", request_id)
                summary['closed'] += 1
        except DomainError as e:
            db.session.rollback()
            logger.warning("Sweep: could not start bidding for request %s: %s", request_id, e.message)
            summary['failed'] += 1
        except Exception:
            _record_failure(request_id, 'start bidding')
            summary['failed'] += 1

    logger.info("Bidding start sweep completed: %s", summary)
    return summary
