"""Renovation request model"""
from app import db
from .base import BaseModel, utcnow
from .enums import RequestStatus


class RenovationRequest(BaseModel):
    """
    Renovation request - the unit the bidding lifecycle runs on.

    ``status`` is only ever written through ``update_if`` by the lifecycle
    module, so every transition is a compare-and-set against the status the
    caller observed.
    """
    __tablename__ = 'renovation_requests'

    customer_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    category = db.Column(db.String(30), nullable=False)
    budget_range = db.Column(db.String(30), nullable=False)
    timeline = db.Column(db.String(30), nullable=False)
    postal_code = db.Column(db.String(20), nullable=False)
    address = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=False)
    photos = db.Column(db.JSON, default=list)  # blob store keys

    status = db.Column(db.String(30), nullable=False, default=RequestStatus.OPEN.value)

    inspection_date = db.Column(db.DateTime)
    inspection_notes = db.Column(db.Text)
    bidding_start_date = db.Column(db.DateTime)
    bidding_end_date = db.Column(db.DateTime)

    selected_contractor_id = db.Column(db.String(36), db.ForeignKey('contractors.id', ondelete='SET NULL'))

    __table_args__ = (
        db.Index('idx_requests_status', 'status'),
        db.Index('idx_requests_bidding_end', 'status', 'bidding_end_date'),
        db.CheckConstraint(
            'bidding_end_date IS NULL OR bidding_start_date IS NULL OR bidding_end_date > bidding_start_date',
            name='ck_requests_bidding_window',
        ),
    )

    customer = db.relationship('User', back_populates='requests')
    selected_contractor = db.relationship('Contractor', foreign_keys=[selected_contractor_id])
    bids = db.relationship('Bid', back_populates='request', lazy='dynamic', cascade='all, delete-orphan')
    inspection_interests = db.relationship(
        'InspectionInterest', back_populates='request', lazy='dynamic', cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<RenovationRequest {self.id} - {self.status}>'

    @property
    def status_enum(self):
        return RequestStatus(self.status)

    @classmethod
    def update_if(cls, request_id, expected_status, patch):
        """
        Conditional update: apply ``patch`` only while the row is still in ``expected_status``.

        Returns the number of rows written (0 means another writer got there first).
        The caller owns the surrounding transaction.
        """
        values = dict(patch)
        values['updated_at'] = utcnow()
        return cls.query.filter(
            cls.id == request_id,
            cls.status == RequestStatus(expected_status).value,
        ).update(values, synchronize_session='fetch')

    def to_dict(self, exclude=None, include_counts=False):
        data = super().to_dict(exclude=exclude)
        if include_counts:
            data['bid_count'] = self.bids.count()
            data['inspection_interest_count'] = self.inspection_interests.count()
        return data
