"""
Base model with common fields and methods
"""
from app import db
from datetime import date, datetime, timezone
from decimal import Decimal
import uuid


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    """Current UTC time as a naive datetime (the storage convention for every column)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value):
    """Normalize an aware datetime to naive UTC; naive values are assumed to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class BaseModel(db.Model):
    """Abstract base model with common fields"""
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self, exclude=None):
        """
        Convert model to dictionary

        Args:
            exclude (list): List of fields to exclude

        Returns:
            dict: Model as dictionary
        """
        exclude = exclude or []
        data = {}

        for column in self.__table__.columns:
            if column.name not in exclude:
                value = getattr(self, column.name)

                if isinstance(value, Decimal):
                    value = float(value)
                elif isinstance(value, (datetime, date)):
                    value = value.isoformat()

                data[column.name] = value

        return data
