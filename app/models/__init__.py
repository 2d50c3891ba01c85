"""SQLAlchemy models package"""
from .base import generate_uuid, utcnow, to_naive_utc
from .enums import UserRole, RequestStatus, BidStatus, Category, BudgetRange, Timeline
from .user import User
from .contractor import Contractor
from .renovation_request import RenovationRequest
from .bid import Bid
from .inspection_interest import InspectionInterest

__all__ = [
    'generate_uuid',
    'utcnow',
    'to_naive_utc',
    'UserRole',
    'RequestStatus',
    'BidStatus',
    'Category',
    'BudgetRange',
    'Timeline',
    'User',
    'Contractor',
    'RenovationRequest',
    'Bid',
    'InspectionInterest',
]
