"""Cart models."""

from datetime import datetime
from storefront.extensions import db


class Cart(db.Model):
    """A user's pending selection. One per user, removed once ordered."""
    __tablename__ = 'carts'
    
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    items = db.relationship('CartItem', backref='cart', lazy='select',
                            cascade='all, delete-orphan', order_by='CartItem.id')
    
    @property
    def total(self):
        """Sum of the lines whose product still exists."""
        return sum(item.subtotal for item in self.items)
    
    def __repr__(self):
        return f'<Cart user={self.user_id}>'


class CartItem(db.Model):
    """Shopping cart line."""
    __tablename__ = 'cart_items'
    __table_args__ = (
        db.UniqueConstraint('cart_id', 'product_id', name='uq_cart_items_cart_product'),
        db.CheckConstraint('quantity >= 1', name='ck_cart_items_quantity_positive'),
    )
    
    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey('carts.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    quantity = db.Column(db.Integer, default=1, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    # Resolves to None when the product row is gone
    product = db.relationship('Product')
    
    @property
    def subtotal(self):
        """Calculate subtotal for this cart item."""
        if self.product:
            return self.product.price * self.quantity
        return 0
    
    def __repr__(self):
        return f'<CartItem {self.product_id} x {self.quantity}>'
