"""Notification model."""

from datetime import datetime
from storefront.extensions import db


class Notification(db.Model):
    """In-app notification record. Delivery happens elsewhere."""
    __tablename__ = 'notifications'
    
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(50), default='order')  # order, promo, system
    link = db.Column(db.String(255))
    is_read = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    @staticmethod
    def create_order_notification(user_id, order, status):
        """Create an order status notification."""
        status_messages = {
            'NEW': f'Your order #{order.order_number} has been placed successfully!',
            'CONFIRMED': 'Your order has been confirmed.',
            'PREPARING': 'Your order is being prepared.',
            'DELIVERING': 'Your order is on its way!',
            'DELIVERED': 'Your order has been delivered. Enjoy!',
            'CANCELED': 'Your order has been cancelled.',
        }
        message = status_messages.get(status, f'Order status updated to: {status}')
        return Notification(
            user_id=user_id,
            title=f'Order {order.order_number}',
            message=message,
            type='order',
            link=f'/order-detail/{order.id}'
        )
    
    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'message': self.message,
            'type': self.type,
            'link': self.link,
            'is_read': self.is_read,
            'created_at': self.created_at.isoformat()
        }
    
    def __repr__(self):
        return f'<Notification {self.title}>'
