"""Product model."""

from datetime import datetime
from storefront.extensions import db


class Product(db.Model):
    """Product model."""
    __tablename__ = 'products'
    __table_args__ = (
        db.CheckConstraint('stock_quantity >= 0', name='ck_products_stock_non_negative'),
    )
    
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Float, nullable=False)
    image_url = db.Column(db.String(255), default='default-product.png')
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    purchase_count = db.Column(db.Integer, nullable=False, default=0)
    is_available = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    def to_summary(self):
        """Short form used inside order lines."""
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'image': self.image_url,
        }
    
    def __repr__(self):
        return f'<Product {self.name}>'
