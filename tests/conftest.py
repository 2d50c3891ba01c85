"""
Pytest configuration and fixtures for Renovate backend tests
"""
import os
from datetime import datetime, timedelta
from itertools import count
from unittest.mock import patch

import pytest

from app import create_app, db
from app.identity import generate_token
from app.models import (
    User, Contractor, RenovationRequest, Bid, InspectionInterest, UserRole, RequestStatus, BidStatus,
)

_seq = count(1)


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing"""
    os.environ['FLASK_ENV'] = 'testing'
    app = create_app('testing')

    with app.app_context():
        yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Fresh schema for every test"""
    db.create_all()
    yield db.session
    db.session.remove()
    db.drop_all()


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def sent(db_session):
    """Capture templated notifications instead of sending them"""
    with patch('notifications.send') as mock_send:
        yield mock_send


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture
def user_factory(db_session):
    """Factory for creating users of any role"""
    def _create_user(role=UserRole.CUSTOMER, **kwargs):
        n = next(_seq)
        defaults = {
            'email': f'user{n}@example.com',
            'name': f'Test User {n}',
            'phone': '416-555-0100',
            'role': UserRole(role).value,
        }
        defaults.update(kwargs)

        user = User(**defaults)
        user.set_password('TestPass123')
        db_session.add(user)
        db_session.commit()
        return user

    return _create_user


@pytest.fixture
def contractor_factory(db_session, user_factory):
    """Factory for contractor users with a business profile"""
    def _create_contractor(**kwargs):
        user = user_factory(role=UserRole.CONTRACTOR)
        defaults = {
            'user_id': user.id,
            'business_name': f'{user.name} Renovations',
            'business_number': 'BN-0001',
            'service_areas': ['M5V'],
            'specialties': ['KITCHEN'],
            'years_experience': 10,
        }
        defaults.update(kwargs)

        contractor = Contractor(**defaults)
        db_session.add(contractor)
        db_session.commit()
        return contractor

    return _create_contractor


@pytest.fixture
def request_factory(db_session, test_customer):
    """Factory for renovation requests in any status"""
    def _create_request(**kwargs):
        defaults = {
            'customer_id': test_customer.id,
            'category': 'KITCHEN',
            'budget_range': 'RANGE_50_100K',
            'timeline': 'WITHIN_3MONTHS',
            'postal_code': 'M5V 3A8',
            'address': '123 King St W, Toronto',
            'description': 'Full kitchen remodel',
            'photos': [],
            'status': RequestStatus.OPEN.value,
        }
        defaults.update(kwargs)
        if isinstance(defaults['status'], RequestStatus):
            defaults['status'] = defaults['status'].value

        renovation_request = RenovationRequest(**defaults)
        db_session.add(renovation_request)
        db_session.commit()
        return renovation_request

    return _create_request


@pytest.fixture
def bidding_request(request_factory):
    """A request whose bidding window ran 2025-01-10 -> 2025-01-17"""
    def _create(status=RequestStatus.BIDDING_OPEN, **kwargs):
        defaults = {
            'status': status,
            'inspection_date': datetime(2025, 1, 10, 9, 0),
            'bidding_start_date': datetime(2025, 1, 10),
            'bidding_end_date': datetime(2025, 1, 17),
        }
        defaults.update(kwargs)
        return request_factory(**defaults)

    return _create


@pytest.fixture
def bid_factory(db_session):
    """Factory for bids"""
    def _create_bid(renovation_request, contractor, **kwargs):
        defaults = {
            'request_id': renovation_request.id,
            'contractor_id': contractor.id,
            'labor_cost': 20000,
            'material_cost': 15000,
            'permit_cost': 1000,
            'disposal_cost': 500,
            'total_amount': 36500,
            'timeline_weeks': 6,
            'status': BidStatus.PENDING.value,
        }
        defaults.update(kwargs)

        bid = Bid(**defaults)
        db_session.add(bid)
        db_session.commit()
        return bid

    return _create_bid


@pytest.fixture
def interest_factory(db_session):
    """Factory for inspection interests"""
    def _create_interest(renovation_request, contractor, will_participate=True, **kwargs):
        interest = InspectionInterest(
            request_id=renovation_request.id,
            contractor_id=contractor.id,
            will_participate=will_participate,
            **kwargs
        )
        db_session.add(interest)
        db_session.commit()
        return interest

    return _create_interest


# ---------------------------------------------------------------------------
# Named users and auth headers
# ---------------------------------------------------------------------------
@pytest.fixture
def test_customer(user_factory):
    return user_factory(role=UserRole.CUSTOMER, email='customer@example.com', name='Jane Customer')


@pytest.fixture
def other_customer(user_factory):
    return user_factory(role=UserRole.CUSTOMER, email='neighbour@example.com', name='Sam Neighbour')


@pytest.fixture
def test_admin(user_factory):
    return user_factory(role=UserRole.ADMIN, email='admin@example.com', name='Ada Admin')


@pytest.fixture
def test_contractor(contractor_factory):
    return contractor_factory(business_name='Maple Kitchens')


def _headers(user):
    return {
        'Authorization': f'Bearer {generate_token(user)}',
        'Content-Type': 'application/json'
    }


@pytest.fixture
def auth_headers(test_customer):
    """Generate auth headers with JWT token for the customer"""
    return _headers(test_customer)


@pytest.fixture
def contractor_headers(test_contractor):
    """Generate auth headers with JWT token for the contractor"""
    return _headers(test_contractor.user)


@pytest.fixture
def admin_headers(test_admin):
    """Generate auth headers with JWT token for the admin"""
    return _headers(test_admin)


@pytest.fixture
def cron_headers(app):
    return {'Authorization': f"Bearer {app.config['CRON_SECRET']}"}


@pytest.fixture
def past():
    """A moment safely before any test request's bidding window"""
    return datetime(2024, 12, 1)


@pytest.fixture
def after_window():
    """A moment after the 2025-01-17 bidding deadline"""
    return datetime(2025, 1, 17) + timedelta(hours=1)
