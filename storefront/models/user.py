"""User model."""

from datetime import datetime
from flask import current_app
from flask_login import UserMixin
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from storefront.extensions import db

TOKEN_SALT = 'storefront-auth'


class User(UserMixin, db.Model):
    """Shopper or admin account, carrying the loyalty points balance."""
    __tablename__ = 'users'
    __table_args__ = (
        db.CheckConstraint('points >= 0', name='ck_users_points_non_negative'),
    )
    
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20))
    role = db.Column(db.String(20), nullable=False, default='customer')  # customer, admin
    points = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    orders = db.relationship('Order', backref='user', lazy='dynamic')
    cart = db.relationship('Cart', backref='user', uselist=False)
    notifications = db.relationship('Notification', backref='user', lazy='dynamic', cascade='all, delete-orphan')
    
    def is_admin(self):
        """Check if user is admin."""
        return self.role == 'admin'
    
    def get_auth_token(self):
        """Sign a bearer token for this user."""
        serializer = URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)
        return serializer.dumps({'user_id': self.id})
    
    @staticmethod
    def verify_auth_token(token, max_age=None):
        """Return the user a bearer token was issued for, or None."""
        serializer = URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)
        if max_age is None:
            max_age = current_app.config['AUTH_TOKEN_MAX_AGE']
        try:
            data = serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return None
        user = db.session.get(User, data.get('user_id'))
        if user is None or not user.is_active:
            return None
        return user
    
    def __repr__(self):
        return f'<User {self.email}>'
