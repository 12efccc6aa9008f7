"""Seed script to populate database with sample data."""

from datetime import datetime, timedelta

from storefront import create_app
from storefront.extensions import db
from storefront.models import User, Product, Promotion


def seed_database():
    """Seed the database with sample data."""
    app = create_app()
    
    with app.app_context():
        # Create tables
        db.create_all()
        
        # Check if already seeded
        if User.query.filter_by(email='admin@storefront.local').first():
            print('Database already seeded!')
            return
        
        print('Seeding database...')
        
        admin = User(
            email='admin@storefront.local',
            name='Admin User',
            phone='9999999999',
            role='admin'
        )
        db.session.add(admin)
        
        products = [
            {'name': 'Wireless Earbuds', 'price': 59.0, 'stock_quantity': 40, 'description': 'Bluetooth 5.3, 24h battery'},
            {'name': 'Phone Case', 'price': 15.0, 'stock_quantity': 120, 'description': 'Shock-absorbing silicone case'},
            {'name': 'USB-C Charger', 'price': 25.0, 'stock_quantity': 75, 'description': '30W fast charger'},
            {'name': 'Smart Watch', 'price': 149.0, 'stock_quantity': 12, 'description': 'Heart rate and GPS'},
            {'name': 'Laptop Stand', 'price': 39.0, 'stock_quantity': 3, 'description': 'Aluminium, adjustable height'},
        ]
        for data in products:
            db.session.add(Product(**data))
        
        # Create sample customers
        customers = [
            {'email': 'john@example.com', 'name': 'John Doe', 'phone': '9876543211', 'points': 50},
            {'email': 'jane@example.com', 'name': 'Jane Smith', 'phone': '9876543212', 'points': 5},
        ]
        
        for cust in customers:
            db.session.add(User(role='customer', **cust))
        db.session.flush()
        
        john = User.query.filter_by(email='john@example.com').first()
        expires_at = datetime.utcnow() + timedelta(days=30)
        
        # Global promotion, reusable by everyone
        db.session.add(Promotion(
            code='WELCOME10',
            description='10% off your order',
            discount_type='percent',
            discount_value=10,
            min_order_value=50,
            expires_at=expires_at
        ))
        # Single-use promotion for one customer
        db.session.add(Promotion(
            code='JOHN5',
            description='5 off, just for you',
            discount_type='fixed',
            discount_value=5,
            user_id=john.id,
            expires_at=expires_at
        ))
        
        db.session.commit()
        print('Database seeded successfully!')
        print('\nBearer tokens:')
        for user in User.query.order_by(User.id).all():
            print(f'  {user.email}: {user.get_auth_token()}')
        print('\nPromotion codes: WELCOME10 (10% off, min 50), JOHN5 (john only, 5 off)')


if __name__ == '__main__':
    seed_database()
