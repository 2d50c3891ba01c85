"""Inspection interest model"""
from app import db
from .base import BaseModel


class InspectionInterest(BaseModel):
    """
    A contractor's answer to the site-inspection invite for a request
    """
    __tablename__ = 'inspection_interests'

    request_id = db.Column(db.String(36), db.ForeignKey('renovation_requests.id', ondelete='CASCADE'), nullable=False)
    contractor_id = db.Column(db.String(36), db.ForeignKey('contractors.id', ondelete='CASCADE'), nullable=False)

    will_participate = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text)

    __table_args__ = (
        db.UniqueConstraint('request_id', 'contractor_id', name='uq_interest_request_contractor'),
    )

    request = db.relationship('RenovationRequest', back_populates='inspection_interests')
    contractor = db.relationship('Contractor', back_populates='inspection_interests')

    def __repr__(self):
        return f'<InspectionInterest {self.contractor_id} -> {self.request_id} ({self.will_participate})>'
