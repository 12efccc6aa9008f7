"""
Shared pytest fixtures.

Every test gets a fresh app on the ``testing`` config (in-memory SQLite,
background scheduler off) with the tables created inside an active app
context, so test code and requests share one session.
"""

from datetime import datetime, timedelta

import pytest
from flask import g

from storefront import create_app
from storefront.extensions import db as _db
from storefront.models import User, Product, Promotion, Cart, CartItem


@pytest.fixture
def app():
    """Create application for the tests."""
    app = create_app('testing')

    # Requests reuse the test's app context, so g outlives a request
    @app.before_request
    def forget_request_user():
        g.pop('_login_user', None)

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def make_user(db):
    """Factory for users."""
    counter = {'n': 0}
    
    def _make_user(points=0, role='customer', name=None):
        counter['n'] += 1
        user = User(
            email=f'user{counter["n"]}@example.com',
            name=name or f'User {counter["n"]}',
            phone='5550000000',
            role=role,
            points=points
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def user(make_user):
    return make_user(points=50)


@pytest.fixture
def admin(make_user):
    return make_user(role='admin', name='Admin')


@pytest.fixture
def make_product(db):
    def _make_product(name='Widget', price=10.0, stock=10):
        product = Product(name=name, price=price, stock_quantity=stock)
        db.session.add(product)
        db.session.commit()
        return product
    return _make_product


@pytest.fixture
def fill_cart(db):
    """Put (product, quantity) lines in a user's cart."""
    def _fill_cart(user, lines):
        cart = Cart.query.filter_by(user_id=user.id).first()
        if cart is None:
            cart = Cart(user_id=user.id)
            db.session.add(cart)
        for product, quantity in lines:
            product_id = product if isinstance(product, int) else product.id
            cart.items.append(CartItem(product_id=product_id, quantity=quantity))
        db.session.commit()
        return cart
    return _fill_cart


@pytest.fixture
def make_promotion(db):
    def _make_promotion(code='SAVE20', discount_type='percent', value=20,
                        min_order_value=None, owner=None, expires_in=timedelta(days=1)):
        promotion = Promotion(
            code=code,
            discount_type=discount_type,
            discount_value=value,
            min_order_value=min_order_value,
            user_id=owner.id if owner is not None else None,
            expires_at=datetime.utcnow() + expires_in
        )
        db.session.add(promotion)
        db.session.commit()
        return promotion
    return _make_promotion


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {'Authorization': f'Bearer {user.get_auth_token()}'}
    return _auth_headers


@pytest.fixture
def checkout_payload():
    def _checkout_payload(**overrides):
        payload = {
            'paymentMethod': 'COD',
            'shippingInfo': {
                'name': 'Jane Doe',
                'phone': '5551234567',
                'address': '1 Main Street',
                'city': 'Springfield',
                'country': 'US'
            },
            'note': 'Leave at the door'
        }
        payload.update(overrides)
        return payload
    return _checkout_payload
