"""User model"""
import bcrypt

from app import db
from .base import BaseModel
from .enums import UserRole


class User(BaseModel):
    """
    User model - customers, contractors and admins share one table; ``role`` tells them apart
    """
    __tablename__ = 'users'

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)

    name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50))

    role = db.Column(db.String(20), nullable=False, default=UserRole.CUSTOMER.value)

    __table_args__ = (
        db.Index('idx_users_role', 'role'),
    )

    contractor = db.relationship('Contractor', back_populates='user', uselist=False)
    requests = db.relationship('RenovationRequest', back_populates='customer', lazy='dynamic')

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    def check_password(self, password):
        """Verify password against hash"""
        if not self.password_hash:
            return False
        return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))

    def to_dict(self, exclude=None):
        exclude = list(exclude or []) + ['password_hash']
        return super().to_dict(exclude=exclude)
