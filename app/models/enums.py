"""String enums stored in VARCHAR columns"""
import enum


class UserRole(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    CONTRACTOR = "CONTRACTOR"
    ADMIN = "ADMIN"


class RequestStatus(str, enum.Enum):
    OPEN = "OPEN"
    INSPECTION_PENDING = "INSPECTION_PENDING"
    INSPECTION_SCHEDULED = "INSPECTION_SCHEDULED"
    BIDDING_OPEN = "BIDDING_OPEN"
    BIDDING_CLOSED = "BIDDING_CLOSED"
    CONTRACTOR_SELECTED = "CONTRACTOR_SELECTED"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"


class BidStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Category(str, enum.Enum):
    KITCHEN = "KITCHEN"
    BATHROOM = "BATHROOM"
    BASEMENT = "BASEMENT"
    FLOORING = "FLOORING"
    PAINTING = "PAINTING"
    OTHER = "OTHER"


class BudgetRange(str, enum.Enum):
    UNDER_50K = "UNDER_50K"
    RANGE_50_100K = "RANGE_50_100K"
    OVER_100K = "OVER_100K"


class Timeline(str, enum.Enum):
    ASAP = "ASAP"
    WITHIN_1MONTH = "WITHIN_1MONTH"
    WITHIN_3MONTHS = "WITHIN_3MONTHS"
    PLANNING = "PLANNING"
