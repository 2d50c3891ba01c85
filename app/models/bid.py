"""Bid model"""
from app import db
from .base import BaseModel
from .enums import BidStatus


class Bid(BaseModel):
    """
    Contractor bid on a renovation request (one per request/contractor pair)
    """
    __tablename__ = 'bids'

    request_id = db.Column(db.String(36), db.ForeignKey('renovation_requests.id', ondelete='CASCADE'), nullable=False)
    contractor_id = db.Column(db.String(36), db.ForeignKey('contractors.id', ondelete='CASCADE'), nullable=False)

    # Cost breakdown
    labor_cost = db.Column(db.Numeric(12, 2), default=0)
    material_cost = db.Column(db.Numeric(12, 2), default=0)
    permit_cost = db.Column(db.Numeric(12, 2), default=0)
    disposal_cost = db.Column(db.Numeric(12, 2), default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    timeline_weeks = db.Column(db.Integer, nullable=False)
    start_date = db.Column(db.Date)
    included_items = db.Column(db.Text)
    excluded_items = db.Column(db.Text)
    notes = db.Column(db.Text)
    estimate_file_key = db.Column(db.String(500))

    status = db.Column(db.String(20), nullable=False, default=BidStatus.PENDING.value)

    __table_args__ = (
        db.UniqueConstraint('request_id', 'contractor_id', name='uq_bids_request_contractor'),
        db.CheckConstraint('total_amount >= 0', name='ck_bids_total_amount'),
        db.CheckConstraint('timeline_weeks > 0', name='ck_bids_timeline_weeks'),
        db.Index('idx_bids_request_status', 'request_id', 'status'),
    )

    request = db.relationship('RenovationRequest', back_populates='bids')
    contractor = db.relationship('Contractor', back_populates='bids')

    def __repr__(self):
        return f'<Bid {self.id} - {self.status}>'

    def to_dict(self, exclude=None, include_contractor=False):
        data = super().to_dict(exclude=exclude)
        if include_contractor and self.contractor:
            data['contractor'] = {
                'id': self.contractor.id,
                'business_name': self.contractor.business_name,
                'rating': float(self.contractor.rating or 0),
            }
        return data
