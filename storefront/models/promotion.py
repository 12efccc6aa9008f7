"""Promotion model."""

from datetime import datetime
from storefront.extensions import db

PERCENT = 'percent'
FIXED = 'fixed'
DISCOUNT_TYPES = (PERCENT, FIXED)


class Promotion(db.Model):
    """Discount code. A null user_id makes it global."""
    __tablename__ = 'promotions'
    
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), nullable=False, index=True)
    description = db.Column(db.String(255))
    discount_type = db.Column(db.String(20), nullable=False)  # percent, fixed
    discount_value = db.Column(db.Float, nullable=False)
    min_order_value = db.Column(db.Float)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    @property
    def is_global(self):
        return self.user_id is None
    
    def meets_minimum(self, subtotal):
        """Check the optional minimum order value."""
        return not self.min_order_value or subtotal >= self.min_order_value
    
    def calculate_discount(self, subtotal):
        """Discount against the undiscounted subtotal. Not clamped here."""
        if self.discount_type == PERCENT:
            return subtotal * (self.discount_value / 100)
        return self.discount_value
    
    @classmethod
    def find_eligible(cls, code, user_id, now=None):
        """Unexpired promotion with this code, owned by user_id or global.
        
        A user-owned promotion wins over a global one sharing the code.
        """
        now = now or datetime.utcnow()
        return cls.query.filter(
            cls.code == code,
            cls.expires_at > now,
            db.or_(cls.user_id == user_id, cls.user_id.is_(None))
        ).order_by(cls.user_id.is_(None), cls.id).first()
    
    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'description': self.description,
            'type': self.discount_type,
            'discount': self.discount_value,
            'minOrderValue': self.min_order_value,
            'userId': self.user_id,
            'expiresAt': self.expires_at.isoformat(),
        }
    
    def __repr__(self):
        return f'<Promotion {self.code}>'
