"""
Bid submission and bidding sweep tests
"""
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from app import db
from app.bidding import (
    calculate_bid_total, submit_bid, update_bid, withdraw_bid, sweep_expired_bidding, sweep_bidding_starts,
)
from app.errors import InvalidState, Conflict, NotFound, Unauthorized, ValidationError
from app.models import Bid, RenovationRequest, RequestStatus, BidStatus, utcnow

S = RequestStatus

DURING_WINDOW = datetime(2025, 1, 12, 15, 0)


def _status(request_id):
    return db.session.get(RenovationRequest, request_id).status


class TestBidTotal:
    """Total computed from the cost breakdown"""

    def test_sum_of_components(self):
        total = calculate_bid_total({
            'labor_cost': '18000', 'material_cost': 22000.5, 'permit_cost': 1500, 'disposal_cost': None,
        })
        assert total == Decimal('41500.50')

    def test_direct_total_without_breakdown(self):
        assert calculate_bid_total({'total_amount': 9999}) == Decimal('9999.00')

    def test_negative_component_rejected(self):
        with pytest.raises(ValidationError):
            calculate_bid_total({'labor_cost': -5})

    def test_nothing_given(self):
        with pytest.raises(ValidationError):
            calculate_bid_total({})

    @pytest.mark.parametrize('value', ['NaN', 'sNaN', 'Infinity', '-Infinity', float('inf'), '1e30', True])
    def test_non_finite_or_oversized_amount_rejected(self, value):
        with pytest.raises(ValidationError):
            calculate_bid_total({'labor_cost': value})

        with pytest.raises(ValidationError):
            calculate_bid_total({'total_amount': value})

    def test_largest_storable_amount(self):
        assert calculate_bid_total({'total_amount': '9999999999.99'}) == Decimal('9999999999.99')

    def test_breakdown_sum_must_fit_storage(self):
        with pytest.raises(ValidationError):
            calculate_bid_total({'labor_cost': '9999999999.99', 'material_cost': 1})


class TestSubmitBid:
    """Contractors bidding on an open request"""

    def test_submit_bid(self, bidding_request, test_contractor, test_customer, sent):
        renovation_request = bidding_request()

        bid = submit_bid(renovation_request.id, test_contractor, {
            'labor_cost': 20000,
            'material_cost': 15000,
            'timeline_weeks': 6,
            'start_date': '2025-02-03',
            'included_items': 'Cabinets, counters',
        }, now=DURING_WINDOW)

        assert bid.status == 'PENDING'
        assert bid.total_amount == Decimal('35000.00')
        assert bid.start_date.isoformat() == '2025-02-03'

        recipient, template, data = sent.call_args.args
        assert recipient == test_customer.email
        assert template == 'new_bid'
        assert data['business_name'] == 'Maple Kitchens'

    def test_duplicate_bid_conflicts(self, bidding_request, test_contractor, bid_factory):
        renovation_request = bidding_request()
        bid_factory(renovation_request, test_contractor)

        with pytest.raises(Conflict):
            submit_bid(renovation_request.id, test_contractor, {'total_amount': 1000, 'timeline_weeks': 2},
                       now=DURING_WINDOW)

    def test_rejected_when_bidding_not_open(self, bidding_request, test_contractor):
        renovation_request = bidding_request(status=S.INSPECTION_SCHEDULED)

        with pytest.raises(InvalidState):
            submit_bid(renovation_request.id, test_contractor, {'total_amount': 1000, 'timeline_weeks': 2},
                       now=DURING_WINDOW)

    def test_rejected_after_deadline_even_before_sweep(self, bidding_request, test_contractor, after_window):
        renovation_request = bidding_request()

        with pytest.raises(InvalidState):
            submit_bid(renovation_request.id, test_contractor, {'total_amount': 1000, 'timeline_weeks': 2},
                       now=after_window)

    @pytest.mark.parametrize('weeks', [None, 'soon', 0, -1, True, False, 6.9, '6.5', '0', [6]])
    def test_timeline_weeks_must_be_positive(self, bidding_request, test_contractor, weeks):
        renovation_request = bidding_request()

        with pytest.raises(ValidationError):
            submit_bid(renovation_request.id, test_contractor, {'total_amount': 1000, 'timeline_weeks': weeks},
                       now=DURING_WINDOW)

        assert Bid.query.count() == 0

    @pytest.mark.parametrize('weeks', [6, 6.0, '6', ' 6 '])
    def test_whole_timeline_weeks_accepted(self, bidding_request, test_contractor, sent, weeks):
        renovation_request = bidding_request()

        bid = submit_bid(renovation_request.id, test_contractor, {'total_amount': 1000, 'timeline_weeks': weeks},
                         now=DURING_WINDOW)

        assert bid.timeline_weeks == 6


class TestEditBid:
    """Revising and withdrawing a pending bid before the deadline"""

    def test_update_recomputes_total_from_merged_costs(self, bidding_request, test_contractor, bid_factory):
        bid = bid_factory(bidding_request(), test_contractor)

        updated = update_bid(bid.id, test_contractor, {
            'labor_cost': 25000, 'timeline_weeks': 8, 'notes': '  Includes permits  ',
        }, now=DURING_WINDOW)

        assert updated.labor_cost == Decimal('25000.00')
        assert updated.material_cost == Decimal('15000.00')
        assert updated.total_amount == Decimal('41500.00')
        assert updated.timeline_weeks == 8
        assert updated.notes == 'Includes permits'

    def test_update_direct_total_without_breakdown(self, bidding_request, test_contractor, bid_factory):
        bid = bid_factory(bidding_request(), test_contractor,
                          labor_cost=0, material_cost=0, permit_cost=0, disposal_cost=0, total_amount=5000)

        updated = update_bid(bid.id, test_contractor, {'total_amount': '7250.5'}, now=DURING_WINDOW)

        assert updated.total_amount == Decimal('7250.50')

    def test_update_total_refused_when_breakdown_exists(self, bidding_request, test_contractor, bid_factory):
        bid = bid_factory(bidding_request(), test_contractor)

        with pytest.raises(ValidationError):
            update_bid(bid.id, test_contractor, {'total_amount': 1}, now=DURING_WINDOW)

    def test_update_rejects_bad_values(self, bidding_request, test_contractor, bid_factory):
        bid = bid_factory(bidding_request(), test_contractor)

        with pytest.raises(ValidationError):
            update_bid(bid.id, test_contractor, {'permit_cost': 'NaN'}, now=DURING_WINDOW)
        with pytest.raises(ValidationError):
            update_bid(bid.id, test_contractor, {'timeline_weeks': 2.5}, now=DURING_WINDOW)

        assert db.session.get(Bid, bid.id).total_amount == Decimal('36500.00')

    def test_someone_elses_bid(self, bidding_request, test_contractor, contractor_factory, bid_factory):
        bid = bid_factory(bidding_request(), contractor_factory())

        with pytest.raises(Unauthorized):
            update_bid(bid.id, test_contractor, {'timeline_weeks': 3}, now=DURING_WINDOW)
        with pytest.raises(Unauthorized):
            withdraw_bid(bid.id, test_contractor, now=DURING_WINDOW)

    def test_missing_bid(self, test_contractor):
        with pytest.raises(NotFound):
            update_bid('no-such-bid', test_contractor, {}, now=DURING_WINDOW)

    def test_frozen_after_deadline(self, bidding_request, test_contractor, bid_factory, after_window):
        bid = bid_factory(bidding_request(), test_contractor)

        with pytest.raises(InvalidState):
            update_bid(bid.id, test_contractor, {'timeline_weeks': 3}, now=after_window)
        with pytest.raises(InvalidState):
            withdraw_bid(bid.id, test_contractor, now=after_window)

    def test_frozen_once_bidding_closed(self, bidding_request, test_contractor, bid_factory):
        bid = bid_factory(bidding_request(status=S.BIDDING_CLOSED), test_contractor)

        with pytest.raises(InvalidState):
            withdraw_bid(bid.id, test_contractor, now=DURING_WINDOW)

    def test_only_pending_bids_change(self, bidding_request, test_contractor, bid_factory):
        bid = bid_factory(bidding_request(), test_contractor, status=BidStatus.REJECTED.value)

        with pytest.raises(InvalidState):
            update_bid(bid.id, test_contractor, {'timeline_weeks': 3}, now=DURING_WINDOW)

    def test_withdraw_deletes_and_notifies(self, bidding_request, test_contractor, test_customer, bid_factory, sent):
        renovation_request = bidding_request()
        bid = bid_factory(renovation_request, test_contractor)

        withdraw_bid(bid.id, test_contractor, now=DURING_WINDOW)

        assert Bid.query.filter_by(request_id=renovation_request.id).count() == 0
        recipient, template, data = sent.call_args.args
        assert recipient == test_customer.email
        assert template == 'bid_withdrawn'
        assert data['business_name'] == 'Maple Kitchens'

    def test_withdrawn_contractor_can_bid_again(self, bidding_request, test_contractor, bid_factory, sent):
        renovation_request = bidding_request()
        bid = bid_factory(renovation_request, test_contractor)

        withdraw_bid(bid.id, test_contractor, now=DURING_WINDOW)
        again = submit_bid(renovation_request.id, test_contractor, {'total_amount': 1000, 'timeline_weeks': 2},
                           now=DURING_WINDOW)

        assert again.status == BidStatus.PENDING.value


class TestCloseSweep:
    """Closing expired bidding windows"""

    def test_scenario_sweep_closes_expired_request(self, bidding_request, contractor_factory, bid_factory, sent):
        renovation_request = bidding_request()
        bids = [bid_factory(renovation_request, contractor_factory()) for _ in range(3)]

        summary = sweep_expired_bidding(datetime(2025, 1, 18))

        assert summary == {'found': 1, 'closed': 1, 'failed': 0}
        assert _status(renovation_request.id) == S.BIDDING_CLOSED.value
        assert all(bid.status == 'PENDING' for bid in bids)
        assert sent.call_args.args[1] == 'bidding_closed'

    def test_second_run_is_a_no_op(self, bidding_request):
        bidding_request()
        now = datetime(2025, 1, 18)

        sweep_expired_bidding(now)
        summary = sweep_expired_bidding(now)

        assert summary['closed'] == 0
        assert summary['found'] == 0

    def test_future_deadline_is_left_alone(self, bidding_request):
        renovation_request = bidding_request()

        summary = sweep_expired_bidding(datetime(2025, 1, 16, 23, 59))

        assert summary['found'] == 0
        assert _status(renovation_request.id) == S.BIDDING_OPEN.value

    def test_deadline_exactly_now_is_not_yet_expired(self, bidding_request):
        renovation_request = bidding_request()

        summary = sweep_expired_bidding(datetime(2025, 1, 17))

        assert summary['found'] == 0
        assert _status(renovation_request.id) == S.BIDDING_OPEN.value

    def test_other_statuses_are_ignored(self, bidding_request):
        bidding_request(status=S.BIDDING_CLOSED)
        bidding_request(status=S.INSPECTION_SCHEDULED)

        assert sweep_expired_bidding(datetime(2025, 2, 1))['found'] == 0

    def test_one_failure_does_not_abort_the_sweep(self, bidding_request):
        first = bidding_request()
        second = bidding_request()

        from app import lifecycle
        real_close = lifecycle.close_bidding

        def flaky_close(request_id, now=None):
            if request_id == first.id:
                raise RuntimeError('database hiccup')
            return real_close(request_id, now)

        with patch.object(lifecycle, 'close_bidding', side_effect=flaky_close):
            summary = sweep_expired_bidding(datetime(2025, 1, 18))

        assert summary == {'found': 2, 'closed': 1, 'failed': 1}
        assert _status(first.id) == S.BIDDING_OPEN.value
        assert _status(second.id) == S.BIDDING_CLOSED.value

    def test_lost_race_is_counted_as_failure(self, bidding_request):
        bidding_request()

        with patch.object(RenovationRequest, 'update_if', return_value=0):
            summary = sweep_expired_bidding(datetime(2025, 1, 18))

        assert summary == {'found': 1, 'closed': 0, 'failed': 1}

    def test_defaults_to_current_time(self, bidding_request):
        yesterday = utcnow() - timedelta(days=1)
        renovation_request = bidding_request(
            bidding_start_date=yesterday - timedelta(days=7), bidding_end_date=yesterday,
        )

        assert sweep_expired_bidding()['closed'] == 1
        assert _status(renovation_request.id) == S.BIDDING_CLOSED.value


class TestStartSweep:
    """Opening bidding once the inspection day arrives"""

    def test_opens_request_with_participants(self, bidding_request, test_contractor, interest_factory, sent):
        renovation_request = bidding_request(status=S.INSPECTION_SCHEDULED)
        interest_factory(renovation_request, test_contractor)

        summary = sweep_bidding_starts(datetime(2025, 1, 10, 0, 5))

        assert summary == {'found': 1, 'opened': 1, 'closed': 0, 'failed': 0}
        assert _status(renovation_request.id) == S.BIDDING_OPEN.value
        sent.assert_called_once()

    def test_closes_request_without_participants(self, bidding_request, contractor_factory, interest_factory):
        renovation_request = bidding_request(status=S.INSPECTION_SCHEDULED)
        interest_factory(renovation_request, contractor_factory(), will_participate=False)

        summary = sweep_bidding_starts(datetime(2025, 1, 10, 0, 5))

        assert summary['closed'] == 1
        assert _status(renovation_request.id) == S.CLOSED.value

    def test_waits_for_start_date(self, bidding_request, past):
        renovation_request = bidding_request(status=S.INSPECTION_SCHEDULED)

        assert sweep_bidding_starts(past)['found'] == 0
        assert _status(renovation_request.id) == S.INSPECTION_SCHEDULED.value
