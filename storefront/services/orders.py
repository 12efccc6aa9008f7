"""Order finalization and the order lifecycle operations around it."""

import logging
from datetime import datetime

from flask import current_app
from sqlalchemy import update, case
from sqlalchemy.exc import SQLAlchemyError

from storefront.extensions import db
from storefront.forms.checkout import ShippingInfoForm
from storefront.models import Cart, Order, OrderItem, Product, User, Notification
from storefront.models.order import NEW, CANCELED, ORDER_STATUSES
from .discounts import resolve_discount, normalize_code, normalize_points
from .errors import (OrderError, ValidationError, EmptyCart, InvalidProduct,
                     InsufficientStock, PersistenceError, OrderNotFound,
                     AccessDenied, InvalidStatusTransition, CancellationWindowClosed)
from .status import transition_status
from .tasks import schedule_order_confirmation

logger = logging.getLogger(__name__)

ORDER_PLACED_NOTE = 'Order placed successfully'
PAYMENT_METHOD_MAX_LENGTH = 20


def validate_checkout_request(payment_method, shipping_info, note=None,
                              promotion_code=None, use_points=None):
    """Reject incomplete or badly typed requests before anything is written."""
    if not payment_method or not shipping_info:
        raise ValidationError('Payment method and shipping info are required')
    if not isinstance(payment_method, str):
        raise ValidationError('Payment method must be a string')
    if len(payment_method) > PAYMENT_METHOD_MAX_LENGTH:
        raise ValidationError('Payment method is too long')
    if not isinstance(shipping_info, dict):
        raise ValidationError('Complete shipping information is required')
    data = {key: value if value is None or isinstance(value, str) else str(value)
            for key, value in shipping_info.items()}
    form = ShippingInfoForm(data=data)
    if not form.validate():
        raise ValidationError('Complete shipping information is required')
    if note is not None and not isinstance(note, str):
        raise ValidationError('Note must be a string')
    normalize_code(promotion_code)
    normalize_points(use_points)


def _snapshot_cart(cart):
    """Check every line and freeze name, price and total as of now."""
    lines = []
    subtotal = 0.0
    for item in cart.items:
        product = item.product
        if product is None:
            raise InvalidProduct()
        if product.stock_quantity < item.quantity:
            raise InsufficientStock(product.name, product.stock_quantity)
        total = round(product.price * item.quantity, 2)
        subtotal += total
        lines.append(OrderItem(
            product_id=product.id,
            name=product.name,
            price=product.price,
            quantity=item.quantity,
            total=total
        ))
    return lines, round(subtotal, 2)


def _decrement_stock(product_id, quantity):
    """Take ``quantity`` off the product's stock, or fail without writing."""
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity,
                purchase_count=Product.purchase_count + quantity)
    )
    if result.rowcount != 1:
        product = db.session.get(Product, product_id)
        if product is None:
            raise InvalidProduct()
        db.session.refresh(product)
        raise InsufficientStock(product.name, product.stock_quantity)


def _restore_stock(product_id, quantity):
    db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock_quantity=Product.stock_quantity + quantity,
                purchase_count=case(
                    (Product.purchase_count >= quantity, Product.purchase_count - quantity),
                    else_=0
                ))
    )


def _release_order_resources(order):
    """Give back the stock and points a cancelled order was holding."""
    for item in order.items:
        _restore_stock(item.product_id, item.quantity)
    if order.points_used:
        db.session.execute(
            update(User)
            .where(User.id == order.user_id)
            .values(points=User.points + order.points_used)
        )


def _unique_order_number():
    order_number = Order.generate_order_number()
    while Order.query.filter_by(order_number=order_number).first() is not None:
        order_number = Order.generate_order_number()
    return order_number


def place_order(user_id, payment_method, shipping_info, note=None,
                promotion_code=None, use_points=None):
    """Turn the user's cart into an order.

    Everything from discount resolution to the scheduled confirmation runs
    in one transaction: on any failure the points, the promotion, the
    stock, the cart and the order are all left as they were.

    Raises:
        OrderError: one of the business failures, or PersistenceError when
            the database itself fails.
    """
    validate_checkout_request(payment_method, shipping_info, note, promotion_code, use_points)
    
    cart = Cart.query.filter_by(user_id=user_id).first()
    if cart is None or not cart.items:
        raise EmptyCart()
    
    try:
        lines, subtotal = _snapshot_cart(cart)
        discount = resolve_discount(subtotal, promotion_code, use_points, user_id)
        final_amount = max(0.0, round(subtotal - discount.discount_amount, 2))
        
        now = datetime.utcnow()
        order = Order(
            order_number=_unique_order_number(),
            user_id=user_id,
            subtotal=subtotal,
            discount=discount.discount_amount,
            discount_code=discount.applied_code,
            discount_source=discount.discount_source,
            points_used=discount.points_used,
            total_amount=final_amount,
            payment_method=payment_method,
            shipping_info=shipping_info,
            note=note or '',
            status=NEW,
            created_at=now,
            updated_at=now
        )
        order.items.extend(lines)
        order.add_status_history(NEW, ORDER_PLACED_NOTE, timestamp=now)
        db.session.add(order)
        db.session.flush()
        
        for line in lines:
            _decrement_stock(line.product_id, line.quantity)
        
        db.session.delete(cart)
        schedule_order_confirmation(order)
        db.session.add(Notification.create_order_notification(user_id, order, NEW))
        db.session.commit()
    except OrderError as e:
        db.session.rollback()
        logger.info('Order rejected for user %s: %s (%s)', user_id, e.message, e.kind)
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Error creating order for user %s (promotion=%r, points=%r)',
                     user_id, promotion_code, use_points, exc_info=True)
        raise PersistenceError() from e
    
    logger.info('Order %s placed by user %s: subtotal=%.2f discount=%.2f total=%.2f',
                order.order_number, user_id, subtotal, order.discount, order.total_amount)
    return order


def list_orders(user_id):
    """The user's orders, newest first."""
    return Order.query.filter_by(user_id=user_id).order_by(
        Order.created_at.desc(), Order.id.desc()
    ).all()


def get_order_for_user(order_id, user):
    """Load an order the user may see (its owner or an admin)."""
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFound()
    if order.user_id != user.id and not user.is_admin():
        raise AccessDenied()
    return order


def cancel_order(order_id, user, reason=None, now=None):
    """Cancel a NEW order inside the cancellation window.

    Stock and redeemed points are given back; a consumed promotion is not.
    """
    now = now or datetime.utcnow()
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFound()
    if order.user_id != user.id:
        raise AccessDenied()
    if not order.can_transition_to(CANCELED):
        raise InvalidStatusTransition(order.status, CANCELED)
    window = current_app.config['ORDER_CANCEL_WINDOW_MINUTES']
    if not order.can_cancel(window, now=now):
        raise CancellationWindowClosed()
    
    previous = order.status
    try:
        if not transition_status(order, CANCELED, reason or 'Customer requested cancellation', now=now):
            raise InvalidStatusTransition(previous, CANCELED)
        _release_order_resources(order)
        db.session.commit()
    except OrderError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Error cancelling order %s', order_id, exc_info=True)
        raise PersistenceError('Error cancelling order') from e
    
    logger.info('Order %s cancelled by user %s', order.order_number, user.id)
    return order


def update_order_status(order_id, new_status, note=None):
    """Advance an order one step along the status machine."""
    new_status = (new_status or '').upper()
    if new_status not in ORDER_STATUSES:
        raise ValidationError(f'Unknown order status: {new_status or "(empty)"}')
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFound()
    if not order.can_transition_to(new_status):
        raise InvalidStatusTransition(order.status, new_status)
    
    previous = order.status
    try:
        if not transition_status(order, new_status, note or f'Status changed to {new_status}'):
            raise InvalidStatusTransition(previous, new_status)
        if new_status == CANCELED:
            _release_order_resources(order)
        db.session.commit()
    except OrderError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error('Error updating order %s to %s', order_id, new_status, exc_info=True)
        raise PersistenceError('Error updating order') from e
    
    logger.info('Order %s moved %s -> %s', order.order_number, previous, new_status)
    return order
