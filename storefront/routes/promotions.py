"""Promotion routes."""

from datetime import datetime
from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from storefront.extensions import db
from storefront.forms.checkout import PromotionForm
from storefront.models import Promotion
from storefront.services.discounts import preview_discount
from storefront.utils.decorators import admin_required

promotions_bp = Blueprint('promotions', __name__)


@promotions_bp.route('/available')
@login_required
def available_promotions():
    """Unexpired promotions this user can apply: global plus their own."""
    promotions = Promotion.query.filter(
        Promotion.expires_at > datetime.utcnow(),
        db.or_(Promotion.user_id == current_user.id, Promotion.user_id.is_(None))
    ).order_by(Promotion.expires_at).all()
    return jsonify({
        'success': True,
        'promotions': [p.to_dict() for p in promotions]
    })


@promotions_bp.route('/validate', methods=['POST'])
@login_required
def validate_promotion():
    """Preview a code against a subtotal. Nothing is consumed."""
    data = request.get_json(silent=True) or {}
    subtotal = data.get('subtotal', 0)
    if isinstance(subtotal, bool) or not isinstance(subtotal, (int, float)) or subtotal < 0:
        return jsonify({'success': False, 'message': 'Subtotal must be a positive number'}), 400
    
    preview = preview_discount(float(subtotal), data.get('code'), current_user.id)
    return jsonify({
        'success': True,
        'message': f'Promotion applied! You save {preview["discount"]:.2f}',
        'promotion': preview
    })


@promotions_bp.route('', methods=['POST'])
@admin_required
def create_promotion():
    """Create a promotion; omit userId for a global one."""
    form = PromotionForm()
    if not form.validate():
        errors = [msg for messages in form.errors.values() for msg in messages]
        return jsonify({'success': False, 'message': errors[0], 'errors': form.errors}), 400
    
    promotion = Promotion(
        code=form.code.data.strip(),
        description=form.description.data,
        discount_type=form.discount_type.data,
        discount_value=form.discount_value.data,
        min_order_value=form.min_order_value.data,
        user_id=form.user_id.data,
        expires_at=form.expires_at.data
    )
    db.session.add(promotion)
    db.session.commit()
    current_app.logger.info('Promotion %s created by admin %s', promotion.code, current_user.id)
    return jsonify({'success': True, 'promotion': promotion.to_dict()}), 201
