"""Discount resolution for checkout.

A promotion code and a points redemption may be combined. The promotion
is always computed against the undiscounted subtotal and points are added
on top; clamping the final amount at zero is left to the caller.

Side effects (user-scoped promotion deletion, points decrement) happen in
the caller's open transaction, so a later failure rolls them back.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import update, delete

from storefront.extensions import db
from storefront.models import Promotion, User
from .errors import ValidationError, InvalidPromotion, PromotionMinimumNotMet, InsufficientPoints

logger = logging.getLogger(__name__)

# One loyalty point is worth this many currency units
POINTS_TO_CURRENCY_RATE = 1

# Largest balance a signed 64-bit points column holds
MAX_POINTS = 2 ** 63 - 1

SOURCE_PROMOTION = 'promotion'
SOURCE_POINTS = 'points'


@dataclass
class DiscountResult:
    """Combined discount and where it came from."""
    discount_amount: float = 0.0
    discount_source: Optional[str] = None
    applied_code: Optional[str] = None
    points_used: int = 0


def normalize_points(use_points):
    """Coerce a requested redemption into a non-negative int."""
    if use_points is None or use_points == '':
        return 0
    if isinstance(use_points, bool):
        raise ValidationError('Points must be a whole number')
    if isinstance(use_points, int):
        value = use_points
    else:
        try:
            number = float(use_points)
        except (TypeError, ValueError):
            raise ValidationError('Points must be a whole number')
        if not number.is_integer():
            raise ValidationError('Points must be a whole number')
        value = int(number)
    if value < 0:
        raise ValidationError('Points cannot be negative')
    if value > MAX_POINTS:
        # No stored balance can cover it
        raise InsufficientPoints()
    return value


def normalize_code(promotion_code):
    """Strip a requested code; None means no code."""
    if promotion_code is None:
        return ''
    if not isinstance(promotion_code, str):
        raise ValidationError('Promotion code must be a string')
    return promotion_code.strip()


def _lookup_promotion(code, subtotal, user_id):
    promotion = Promotion.find_eligible(code, user_id)
    if promotion is None:
        raise InvalidPromotion()
    if not promotion.meets_minimum(subtotal):
        raise PromotionMinimumNotMet()
    return promotion


def _consume_promotion(promotion):
    """Delete a user-scoped promotion; global ones stay."""
    if promotion.is_global:
        return
    result = db.session.execute(
        delete(Promotion).where(Promotion.id == promotion.id),
        execution_options={'synchronize_session': False}
    )
    if result.rowcount != 1:
        # Already spent by a concurrent checkout
        raise InvalidPromotion()
    db.session.expunge(promotion)


def _redeem_points(user_id, points):
    """Decrement the balance only if it covers the redemption."""
    result = db.session.execute(
        update(User)
        .where(User.id == user_id, User.points >= points)
        .values(points=User.points - points)
    )
    if result.rowcount != 1:
        raise InsufficientPoints()


def resolve_discount(subtotal, promotion_code=None, use_points=None, user_id=None):
    """Resolve a promotion code and/or points into one discount.

    Args:
        subtotal: Undiscounted order subtotal.
        promotion_code: Optional code; an unknown code is an error.
        use_points: Optional points to redeem.
        user_id: The shopper; promotions owned by other users never match.

    Returns:
        DiscountResult

    Raises:
        InvalidPromotion, PromotionMinimumNotMet, InsufficientPoints,
        ValidationError
    """
    points = normalize_points(use_points)
    code = normalize_code(promotion_code)
    result = DiscountResult()
    
    if code:
        promotion = _lookup_promotion(code, subtotal, user_id)
        result.discount_amount = promotion.calculate_discount(subtotal)
        result.discount_source = SOURCE_PROMOTION
        result.applied_code = promotion.code
        _consume_promotion(promotion)
    
    if points > 0:
        _redeem_points(user_id, points)
        result.discount_amount += points * POINTS_TO_CURRENCY_RATE
        result.points_used = points
        if result.discount_source:
            result.discount_source = f'{result.discount_source}+{SOURCE_POINTS}'
        else:
            result.discount_source = SOURCE_POINTS
    
    result.discount_amount = round(result.discount_amount, 2)
    if result.discount_source:
        logger.info('Discount resolved for user %s: %.2f (%s)',
                    user_id, result.discount_amount, result.discount_source)
    return result


def preview_discount(subtotal, promotion_code, user_id):
    """Check a code against a subtotal without consuming it."""
    code = normalize_code(promotion_code)
    if not code:
        raise InvalidPromotion()
    promotion = _lookup_promotion(code, subtotal, user_id)
    discount = round(promotion.calculate_discount(subtotal), 2)
    return {
        'code': promotion.code,
        'type': promotion.discount_type,
        'discount': discount,
        'finalAmount': max(0.0, round(subtotal - discount, 2)),
    }
