"""
Winner selection for a closed bidding round.

One transaction moves the request to CONTRACTOR_SELECTED, accepts the chosen
bid and rejects every sibling bid, so a request never has more than one
ACCEPTED bid. A second selection on the same request fails with InvalidState
because the request has already left BIDDING_CLOSED.
"""

import logging

import notifications
from app import lifecycle
from app.errors import Unauthorized, InvalidState, BidNotFound, Conflict
from app.models import Bid, BidStatus, RequestStatus

logger = logging.getLogger(__name__)


def select_contractor(request_id, acting_customer_id, contractor_id):
    renovation_request = lifecycle.get_request(request_id)

    if renovation_request.customer_id != acting_customer_id:
        raise Unauthorized('Request not found or unauthorized')
    if renovation_request.status_enum != RequestStatus.BIDDING_CLOSED:
        raise InvalidState('Cannot select contractor until bidding is closed')

    winning_bid = Bid.query.filter_by(
        request_id=renovation_request.id,
        contractor_id=contractor_id,
        status=BidStatus.PENDING.value,
    ).first()
    if winning_bid is None:
        raise BidNotFound()

    with lifecycle.transaction():
        lifecycle.apply_transition(renovation_request, RequestStatus.CONTRACTOR_SELECTED, {
            'selected_contractor_id': contractor_id,
        })
        accepted = Bid.query.filter_by(id=winning_bid.id, status=BidStatus.PENDING.value).update(
            {'status': BidStatus.ACCEPTED.value}, synchronize_session='fetch'
        )
        if accepted != 1:
            raise Conflict('The selected bid changed while it was being accepted')
        rejected = Bid.query.filter(
            Bid.request_id == renovation_request.id,
            Bid.id != winning_bid.id,
        ).update({'status': BidStatus.REJECTED.value}, synchronize_session='fetch')

    logger.info("Contractor %s selected for request %s (%d other bid(s) rejected)",
                contractor_id, renovation_request.id, rejected)

    _notify_bidders(renovation_request.id)
    return lifecycle.get_request(request_id)


def _notify_bidders(request_id):
    renovation_request = lifecycle.get_request(request_id)
    customer = renovation_request.customer

    for bid in renovation_request.bids:
        contractor = bid.contractor
        if contractor is None:
            continue
        if bid.status == BidStatus.ACCEPTED.value:
            notifications.send(contractor.email, 'bid_accepted', {
                'contractor_name': contractor.business_name,
                'category': renovation_request.category,
                'address': renovation_request.address,
                'total_amount': bid.total_amount,
                'customer_name': customer.name if customer else None,
            })
        else:
            notifications.send(contractor.email, 'bid_rejected', {
                'contractor_name': contractor.business_name,
                'category': renovation_request.category,
            })
