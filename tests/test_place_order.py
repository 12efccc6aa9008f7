"""Tests for POST /order."""

from datetime import timedelta

import pytest
from sqlalchemy import update

from storefront.models import Cart, Order, Product, Promotion, ScheduledTask, User, Notification
from storefront.services import orders as order_service
from storefront.services.errors import InsufficientStock


def _place(client, headers, payload):
    return client.post('/order', json=payload, headers=headers)


def test_requires_authentication(client, checkout_payload):
    response = client.post('/order', json=checkout_payload())
    
    assert response.status_code == 401
    assert response.get_json() == {'success': False, 'message': 'Authentication required'}


def test_rejects_bad_token(client, checkout_payload):
    response = client.post('/order', json=checkout_payload(),
                           headers={'Authorization': 'Bearer not-a-token'})
    assert response.status_code == 401


def test_places_order(client, db, user, make_product, fill_cart, auth_headers, checkout_payload):
    mug = make_product(name='Mug', price=12.5, stock=10)
    pen = make_product(name='Pen', price=2.0, stock=5)
    fill_cart(user, [(mug, 2), (pen, 3)])
    
    response = _place(client, auth_headers(user), checkout_payload())
    
    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['message'] == 'Order placed successfully'
    order = body['order']
    assert order['status'] == 'NEW'
    assert order['orderNumber'].startswith('ORD')
    assert order['totalAmount'] == 31.0
    assert order['discount'] == 0
    assert order['discountCode'] is None
    assert order['discountSource'] is None
    assert order['paymentMethod'] == 'COD'
    assert order['userId'] == user.id
    assert order['user'] == {'name': user.name, 'email': user.email}
    assert order['note'] == 'Leave at the door'
    assert order['shippingInfo']['city'] == 'Springfield'
    assert [(i['name'], i['price'], i['quantity'], i['total']) for i in order['items']] == [
        ('Mug', 12.5, 2, 25.0),
        ('Pen', 2.0, 3, 6.0),
    ]
    assert order['items'][0]['product']['name'] == 'Mug'
    assert len(order['statusHistory']) == 1
    assert order['statusHistory'][0]['status'] == 'NEW'
    assert order['statusHistory'][0]['note'] == 'Order placed successfully'
    assert order['canCancel'] is True
    
    assert db.session.get(Product, mug.id).stock_quantity == 8
    assert db.session.get(Product, mug.id).purchase_count == 2
    assert db.session.get(Product, pen.id).stock_quantity == 2
    assert db.session.get(Product, pen.id).purchase_count == 3


def test_cart_is_removed_and_repeat_fails(client, user, make_product, fill_cart,
                                          auth_headers, checkout_payload):
    fill_cart(user, [(make_product(), 1)])
    
    first = _place(client, auth_headers(user), checkout_payload())
    second = _place(client, auth_headers(user), checkout_payload())
    
    assert first.status_code == 201
    assert Cart.query.filter_by(user_id=user.id).first() is None
    assert second.status_code == 400
    assert second.get_json() == {'success': False, 'message': 'Cart is empty', 'error': 'EmptyCart'}
    assert Order.query.count() == 1


def test_empty_cart_without_lines(client, db, user, auth_headers, checkout_payload):
    db.session.add(Cart(user_id=user.id))
    db.session.commit()
    
    response = _place(client, auth_headers(user), checkout_payload())
    
    assert response.status_code == 400
    assert response.get_json()['error'] == 'EmptyCart'


def test_promotion_and_points(client, db, make_user, make_product, fill_cart,
                              make_promotion, auth_headers, checkout_payload):
    shopper = make_user(points=25)
    fill_cart(shopper, [(make_product(price=50.0), 2)])
    make_promotion(code='SAVE20', discount_type='percent', value=20)
    
    response = _place(client, auth_headers(shopper),
                      checkout_payload(promotionCode='SAVE20', usePoints=10))
    
    assert response.status_code == 201
    order = response.get_json()['order']
    assert order['subtotal'] == 100
    assert order['discount'] == 30
    assert order['totalAmount'] == 70
    assert order['discountSource'] == 'promotion+points'
    assert order['discountCode'] == 'SAVE20'
    assert order['pointsUsed'] == 10
    assert db.session.get(User, shopper.id).points == 15


def test_fixed_discount_floors_at_zero(client, user, make_product, fill_cart,
                                       make_promotion, auth_headers, checkout_payload):
    fill_cart(user, [(make_product(price=15.0), 1)])
    make_promotion(code='TWENTY', discount_type='fixed', value=20)
    
    response = _place(client, auth_headers(user), checkout_payload(promotionCode='TWENTY'))
    
    order = response.get_json()['order']
    assert order['discount'] == 20
    assert order['totalAmount'] == 0


def test_user_promotion_single_use(client, user, make_product, fill_cart,
                                   make_promotion, auth_headers, checkout_payload):
    product = make_product(stock=10)
    make_promotion(code='MINE', owner=user)
    
    fill_cart(user, [(product, 1)])
    first = _place(client, auth_headers(user), checkout_payload(promotionCode='MINE'))
    fill_cart(user, [(product, 1)])
    second = _place(client, auth_headers(user), checkout_payload(promotionCode='MINE'))
    
    assert first.status_code == 201
    assert second.status_code == 400
    assert second.get_json()['message'] == 'Invalid or expired promotion code'
    # The rejected attempt kept the cart
    assert Cart.query.filter_by(user_id=user.id).first() is not None


def test_global_promotion_reusable(client, make_user, make_product, fill_cart,
                                   make_promotion, auth_headers, checkout_payload):
    product = make_product(stock=10)
    make_promotion(code='ALL10', value=10)
    
    for shopper in (make_user(), make_user()):
        fill_cart(shopper, [(product, 1)])
        response = _place(client, auth_headers(shopper), checkout_payload(promotionCode='ALL10'))
        assert response.status_code == 201
        assert response.get_json()['order']['discount'] == 1
    
    assert Promotion.query.filter_by(code='ALL10').count() == 1


def test_insufficient_points_has_no_side_effects(client, db, make_user, make_product, fill_cart,
                                                 make_promotion, auth_headers, checkout_payload):
    shopper = make_user(points=5)
    product = make_product(stock=4)
    fill_cart(shopper, [(product, 2)])
    make_promotion(code='MINE', owner=shopper)
    
    response = _place(client, auth_headers(shopper),
                      checkout_payload(promotionCode='MINE', usePoints=10))
    
    assert response.status_code == 400
    assert response.get_json()['error'] == 'InsufficientPoints'
    assert db.session.get(User, shopper.id).points == 5
    assert db.session.get(Product, product.id).stock_quantity == 4
    assert Promotion.query.filter_by(code='MINE').count() == 1
    assert Cart.query.filter_by(user_id=shopper.id).first() is not None
    assert Order.query.count() == 0


def test_insufficient_stock_message(client, user, make_product, fill_cart,
                                    auth_headers, checkout_payload):
    fill_cart(user, [(make_product(name='Lamp', stock=2), 3)])
    
    response = _place(client, auth_headers(user), checkout_payload())
    
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Not enough stock for Lamp. Available: 2'


def test_stock_never_oversold(client, db, make_user, make_product, fill_cart,
                              auth_headers, checkout_payload):
    product = make_product(name='Console', stock=5)
    first, second = make_user(), make_user()
    fill_cart(first, [(product, 3)])
    fill_cart(second, [(product, 3)])
    
    ok = _place(client, auth_headers(first), checkout_payload())
    rejected = _place(client, auth_headers(second), checkout_payload())
    
    assert ok.status_code == 201
    assert rejected.status_code == 400
    assert rejected.get_json()['message'] == 'Not enough stock for Console. Available: 2'
    assert db.session.get(Product, product.id).stock_quantity == 2


def test_conditional_decrement_refuses_to_go_negative(db, make_product):
    product = make_product(name='Chair', stock=2)
    
    with pytest.raises(InsufficientStock) as exc:
        order_service._decrement_stock(product.id, 3)
    assert exc.value.available == 2
    db.session.rollback()
    assert db.session.get(Product, product.id).stock_quantity == 2


def test_stock_taken_between_check_and_decrement(client, db, monkeypatch, user, make_product,
                                                 fill_cart, auth_headers, checkout_payload):
    product = make_product(name='Drone', stock=3)
    fill_cart(user, [(product, 3)])
    real_resolve = order_service.resolve_discount
    
    def competing_checkout(*args, **kwargs):
        # Another order takes stock after our check passed
        db.session.execute(update(Product).where(Product.id == product.id).values(stock_quantity=1))
        return real_resolve(*args, **kwargs)
    
    monkeypatch.setattr(order_service, 'resolve_discount', competing_checkout)
    
    response = _place(client, auth_headers(user), checkout_payload())
    
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Not enough stock for Drone. Available: 1'
    assert Order.query.count() == 0
    assert ScheduledTask.query.count() == 0
    assert Cart.query.filter_by(user_id=user.id).first() is not None


def test_invalid_product(client, user, fill_cart, auth_headers, checkout_payload):
    fill_cart(user, [(9999, 1)])
    
    response = _place(client, auth_headers(user), checkout_payload())
    
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Invalid product in cart'


def test_missing_payment_method(client, user, make_product, fill_cart,
                                auth_headers, checkout_payload):
    fill_cart(user, [(make_product(), 1)])
    
    response = _place(client, auth_headers(user), checkout_payload(paymentMethod=''))
    
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Payment method and shipping info are required'


def test_non_string_payment_method(client, user, make_product, fill_cart,
                                   auth_headers, checkout_payload):
    fill_cart(user, [(make_product(), 1)])

    response = _place(client, auth_headers(user), checkout_payload(paymentMethod=42))

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Payment method must be a string'


@pytest.mark.parametrize('overrides, error, message', [
    ({'promotionCode': 123}, 'ValidationError', 'Promotion code must be a string'),
    ({'promotionCode': ['X']}, 'ValidationError', 'Promotion code must be a string'),
    ({'note': {'a': 1}}, 'ValidationError', 'Note must be a string'),
    ({'paymentMethod': 'X' * 21}, 'ValidationError', 'Payment method is too long'),
    ({'usePoints': 10 ** 20}, 'InsufficientPoints', 'Not enough points'),
])
def test_badly_typed_fields_are_rejected(client, db, user, make_product, fill_cart,
                                         auth_headers, checkout_payload,
                                         overrides, error, message):
    product = make_product(stock=5)
    fill_cart(user, [(product, 2)])

    response = _place(client, auth_headers(user), checkout_payload(**overrides))

    assert response.status_code == 400
    assert response.get_json() == {'success': False, 'message': message, 'error': error}
    db.session.expire_all()
    assert Order.query.count() == 0
    assert db.session.get(Product, product.id).stock_quantity == 5
    assert db.session.get(User, user.id).points == 50
    assert Cart.query.filter_by(user_id=user.id).first() is not None


def test_incomplete_shipping_info(client, user, make_product, fill_cart,
                                  auth_headers, checkout_payload):
    fill_cart(user, [(make_product(), 1)])
    
    response = _place(client, auth_headers(user),
                      checkout_payload(shippingInfo={'name': 'Jane', 'address': '1 Main St', 'phone': ' '}))
    
    assert response.status_code == 400
    assert response.get_json() == {
        'success': False,
        'message': 'Complete shipping information is required',
        'error': 'ValidationError'
    }


def test_validation_runs_before_cart_lookup(client, user, auth_headers):
    response = client.post('/order', json={}, headers=auth_headers(user))
    
    assert response.status_code == 400
    assert response.get_json()['error'] == 'ValidationError'


def test_snapshot_survives_price_change(client, db, user, make_product, fill_cart,
                                        auth_headers, checkout_payload):
    product = make_product(name='Book', price=20.0, stock=5)
    fill_cart(user, [(product, 2)])
    order_id = _place(client, auth_headers(user), checkout_payload()).get_json()['order']['_id']
    
    db.session.get(Product, product.id).price = 99.0
    db.session.commit()
    
    order = client.get(f'/order/my-orders/{order_id}', headers=auth_headers(user)).get_json()['order']
    assert order['items'][0]['price'] == 20.0
    assert order['items'][0]['total'] == 40.0
    assert order['totalAmount'] == 40.0
    assert order['items'][0]['product']['price'] == 99.0


def test_schedules_confirmation_and_notifies(client, app, db, user, make_product, fill_cart,
                                            auth_headers, checkout_payload):
    fill_cart(user, [(make_product(), 1)])
    
    order_id = _place(client, auth_headers(user), checkout_payload()).get_json()['order']['_id']
    
    order = db.session.get(Order, order_id)
    task = ScheduledTask.query.filter_by(order_id=order_id).one()
    assert task.action == 'confirm_order'
    assert task.status == 'pending'
    assert task.due_at - order.created_at == timedelta(minutes=app.config['ORDER_AUTO_CONFIRM_MINUTES'])
    assert Notification.query.filter_by(user_id=user.id, type='order').count() == 1
