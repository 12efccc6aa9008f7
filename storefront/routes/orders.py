"""Order routes."""

from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from storefront.services import orders as order_service
from storefront.services.errors import ValidationError
from storefront.utils.decorators import admin_required

orders_bp = Blueprint('orders', __name__)


def _order_json(order):
    return order.to_dict(current_app.config['ORDER_CANCEL_WINDOW_MINUTES'])


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


@orders_bp.route('', methods=['POST'])
@login_required
def place_order():
    """Checkout: turn the cart into an order."""
    data = _json_body()
    order = order_service.place_order(
        current_user.id,
        payment_method=data.get('paymentMethod'),
        shipping_info=data.get('shippingInfo'),
        note=data.get('note'),
        promotion_code=data.get('promotionCode'),
        use_points=data.get('usePoints')
    )
    return jsonify({
        'success': True,
        'message': 'Order placed successfully',
        'order': _order_json(order)
    }), 201


@orders_bp.route('/my-orders')
@login_required
def my_orders():
    """Order history."""
    orders = order_service.list_orders(current_user.id)
    return jsonify({
        'success': True,
        'orders': [_order_json(order) for order in orders]
    })


@orders_bp.route('/my-orders/<int:order_id>')
@login_required
def order_detail(order_id):
    """Order detail."""
    order = order_service.get_order_for_user(order_id, current_user)
    return jsonify({'success': True, 'order': _order_json(order)})


@orders_bp.route('/cancel/<int:order_id>', methods=['PUT'])
@login_required
def cancel_order(order_id):
    """Cancel an order."""
    data = _json_body()
    order = order_service.cancel_order(order_id, current_user, reason=data.get('reason'))
    return jsonify({
        'success': True,
        'message': 'Order canceled successfully',
        'order': _order_json(order)
    })


@orders_bp.route('/<int:order_id>/status', methods=['PUT'])
@admin_required
def update_status(order_id):
    """Move an order to its next status."""
    data = _json_body()
    order = order_service.update_order_status(order_id, data.get('status'), note=data.get('note'))
    return jsonify({'success': True, 'order': _order_json(order)})
