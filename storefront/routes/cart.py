"""Cart routes."""

from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from storefront.extensions import db
from storefront.models import Cart, CartItem, Product

cart_bp = Blueprint('cart', __name__)


def _cart_json(cart):
    if cart is None:
        return {'items': [], 'total': 0, 'count': 0}
    return {
        'items': [{
            'productId': item.product_id,
            'quantity': item.quantity,
            'subtotal': item.subtotal,
            'product': item.product.to_summary() if item.product else None
        } for item in cart.items],
        'total': cart.total,
        'count': len(cart.items)
    }


def _parse_quantity(value, default=None):
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


@cart_bp.route('')
@login_required
def view_cart():
    """View shopping cart."""
    cart = Cart.query.filter_by(user_id=current_user.id).first()
    return jsonify({'success': True, 'cart': _cart_json(cart)})


@cart_bp.route('/add', methods=['POST'])
@login_required
def add_to_cart():
    """Add product to cart, creating the cart on first add."""
    data = request.get_json(silent=True) or {}
    product_id = data.get('productId')
    quantity = _parse_quantity(data.get('quantity'), default=1)
    
    if quantity is None or quantity < 1:
        return jsonify({'success': False, 'message': 'Quantity must be at least 1'}), 400
    
    product = db.session.get(Product, product_id) if isinstance(product_id, int) else None
    if not product or not product.is_available:
        return jsonify({'success': False, 'message': 'Product not available'}), 400
    
    cart = Cart.query.filter_by(user_id=current_user.id).first()
    if cart is None:
        cart = Cart(user_id=current_user.id)
        db.session.add(cart)
    
    # Check if already in cart
    cart_item = next((item for item in cart.items if item.product_id == product.id), None)
    if cart_item:
        cart_item.quantity += quantity
    else:
        cart.items.append(CartItem(product_id=product.id, quantity=quantity))
    
    db.session.commit()
    return jsonify({
        'success': True,
        'message': f'{product.name} added to cart',
        'cart': _cart_json(cart)
    })


@cart_bp.route('/update', methods=['PUT'])
@login_required
def update_cart():
    """Set a line's quantity; zero removes the line."""
    data = request.get_json(silent=True) or {}
    product_id = data.get('productId')
    quantity = _parse_quantity(data.get('quantity'))
    
    if quantity is None or quantity < 0:
        return jsonify({'success': False, 'message': 'Quantity must be zero or more'}), 400
    
    cart = Cart.query.filter_by(user_id=current_user.id).first()
    cart_item = None
    if cart is not None:
        cart_item = next((item for item in cart.items if item.product_id == product_id), None)
    if not cart_item:
        return jsonify({'success': False, 'message': 'Item not found'}), 404
    
    if quantity == 0:
        cart.items.remove(cart_item)
    else:
        cart_item.quantity = quantity
    
    db.session.commit()
    return jsonify({'success': True, 'cart': _cart_json(cart)})


@cart_bp.route('/remove/<int:product_id>', methods=['DELETE'])
@login_required
def remove_from_cart(product_id):
    """Remove item from cart."""
    cart = Cart.query.filter_by(user_id=current_user.id).first()
    cart_item = None
    if cart is not None:
        cart_item = next((item for item in cart.items if item.product_id == product_id), None)
    if not cart_item:
        return jsonify({'success': False, 'message': 'Item not found'}), 404
    
    cart.items.remove(cart_item)
    db.session.commit()
    return jsonify({'success': True, 'cart': _cart_json(cart)})
