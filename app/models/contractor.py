"""Contractor model"""
from app import db
from .base import BaseModel


class Contractor(BaseModel):
    """
    Contractor business profile attached to a CONTRACTOR user
    """
    __tablename__ = 'contractors'

    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)

    business_name = db.Column(db.String(255), nullable=False)
    business_number = db.Column(db.String(50))
    phone = db.Column(db.String(50))

    service_areas = db.Column(db.JSON, default=list)  # postal code prefixes
    specialties = db.Column(db.JSON, default=list)  # Category values
    years_experience = db.Column(db.Integer)
    rating = db.Column(db.Numeric(3, 2), default=0)

    user = db.relationship('User', back_populates='contractor')
    bids = db.relationship('Bid', back_populates='contractor', lazy='dynamic')
    inspection_interests = db.relationship('InspectionInterest', back_populates='contractor', lazy='dynamic')

    def __repr__(self):
        return f'<Contractor {self.business_name}>'

    @property
    def email(self):
        return self.user.email if self.user else None
