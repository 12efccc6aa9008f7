"""Order models."""

from datetime import datetime, timedelta
import uuid
from storefront.extensions import db

NEW = 'NEW'
CONFIRMED = 'CONFIRMED'
PREPARING = 'PREPARING'
DELIVERING = 'DELIVERING'
DELIVERED = 'DELIVERED'
CANCELED = 'CANCELED'

ORDER_STATUSES = (NEW, CONFIRMED, PREPARING, DELIVERING, DELIVERED, CANCELED)

# Allowed forward moves
STATUS_TRANSITIONS = {
    NEW: (CONFIRMED, CANCELED),
    CONFIRMED: (PREPARING,),
    PREPARING: (DELIVERING,),
    DELIVERING: (DELIVERED,),
    DELIVERED: (),
    CANCELED: (),
}


class Order(db.Model):
    """Order model."""
    __tablename__ = 'orders'
    
    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    
    # Pricing
    subtotal = db.Column(db.Float, default=0.0)
    discount = db.Column(db.Float, default=0.0)
    discount_code = db.Column(db.String(50))
    discount_source = db.Column(db.String(30))  # promotion, points, promotion+points
    points_used = db.Column(db.Integer, default=0)
    total_amount = db.Column(db.Float, nullable=False)
    
    # Status
    status = db.Column(db.String(20), nullable=False, default=NEW)
    
    # Checkout details
    payment_method = db.Column(db.String(20), nullable=False)  # COD, ONLINE
    shipping_info = db.Column(db.JSON, nullable=False)
    note = db.Column(db.Text, default='')
    
    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    items = db.relationship('OrderItem', backref='order', lazy='select',
                            cascade='all, delete-orphan', order_by='OrderItem.id')
    status_history = db.relationship('OrderStatusHistory', backref='order', lazy='select',
                                     cascade='all, delete-orphan',
                                     order_by='OrderStatusHistory.id')
    
    @staticmethod
    def generate_order_number():
        """Generate a unique order number."""
        timestamp = datetime.utcnow().strftime('%Y%m%d%H%M%S')
        unique_id = str(uuid.uuid4().hex)[:6].upper()
        return f'ORD{timestamp}{unique_id}'
    
    def add_status_history(self, status, note=None, timestamp=None):
        """Append a status entry. History rows are never edited."""
        self.status_history.append(OrderStatusHistory(
            status=status,
            note=note,
            timestamp=timestamp or datetime.utcnow()
        ))
    
    def can_transition_to(self, status):
        return status in STATUS_TRANSITIONS.get(self.status, ())
    
    def can_cancel(self, window_minutes=30, now=None):
        """Check if order can be cancelled by its owner."""
        now = now or datetime.utcnow()
        return (self.status == NEW and
                now - self.created_at <= timedelta(minutes=window_minutes))
    
    def to_dict(self, cancel_window_minutes=30):
        """Response shape used by the order endpoints."""
        return {
            '_id': self.id,
            'orderNumber': self.order_number,
            'userId': self.user_id,
            'user': {'name': self.user.name, 'email': self.user.email} if self.user else None,
            'status': self.status,
            'subtotal': self.subtotal,
            'totalAmount': self.total_amount,
            'discount': self.discount,
            'discountCode': self.discount_code,
            'discountSource': self.discount_source,
            'pointsUsed': self.points_used,
            'items': [item.to_dict() for item in self.items],
            'shippingInfo': self.shipping_info,
            'paymentMethod': self.payment_method,
            'note': self.note,
            'statusHistory': [h.to_dict() for h in self.status_history],
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'canCancel': self.can_cancel(cancel_window_minutes) if self.created_at else False,
        }
    
    def __repr__(self):
        return f'<Order {self.order_number}>'


class OrderItem(db.Model):
    """Order line. Name and price are snapshots taken at checkout."""
    __tablename__ = 'order_items'
    
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    total = db.Column(db.Float, nullable=False)
    
    product = db.relationship('Product')
    
    def to_dict(self):
        return {
            'productId': self.product_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
            'total': self.total,
            'product': self.product.to_summary() if self.product else None,
        }
    
    def __repr__(self):
        return f'<OrderItem {self.name} x {self.quantity}>'


class OrderStatusHistory(db.Model):
    """Order status history model."""
    __tablename__ = 'order_status_history'
    
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False)
    note = db.Column(db.String(500))
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    
    def to_dict(self):
        return {
            'status': self.status,
            'timestamp': self.timestamp.isoformat(),
            'note': self.note,
        }
    
    def __repr__(self):
        return f'<OrderStatusHistory {self.status}>'
