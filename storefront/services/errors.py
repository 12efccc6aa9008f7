"""Errors raised by the order services.

Every business failure is an ``OrderError`` carrying a ``kind`` tag, a
user-facing message and the HTTP status the API answers with. Services
raise them before touching any state where possible; the API layer turns
them into ``{"success": false, "message": ...}`` bodies.
"""


class OrderError(Exception):
    """Base class for order and discount failures."""
    kind = 'OrderError'
    status_code = 400
    default_message = 'Order could not be processed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'success': False, 'message': self.message, 'error': self.kind}


class ValidationError(OrderError):
    kind = 'ValidationError'
    default_message = 'Payment method and shipping info are required'


class EmptyCart(OrderError):
    kind = 'EmptyCart'
    default_message = 'Cart is empty'


class InvalidProduct(OrderError):
    kind = 'InvalidProduct'
    default_message = 'Invalid product in cart'


class InsufficientStock(OrderError):
    kind = 'InsufficientStock'

    def __init__(self, product_name, available):
        self.product_name = product_name
        self.available = available
        super().__init__(f'Not enough stock for {product_name}. Available: {available}')


class InvalidPromotion(OrderError):
    kind = 'InvalidPromotion'
    default_message = 'Invalid or expired promotion code'


class PromotionMinimumNotMet(OrderError):
    kind = 'PromotionMinimumNotMet'
    default_message = 'Order does not meet minimum value for promotion'


class InsufficientPoints(OrderError):
    kind = 'InsufficientPoints'
    default_message = 'Not enough points'


class PersistenceError(OrderError):
    kind = 'PersistenceError'
    status_code = 500
    default_message = 'Error creating order'


class OrderNotFound(OrderError):
    kind = 'OrderNotFound'
    status_code = 404
    default_message = 'Order not found'


class AccessDenied(OrderError):
    kind = 'AccessDenied'
    status_code = 403
    default_message = 'Access denied'


class InvalidStatusTransition(OrderError):
    kind = 'InvalidStatusTransition'

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f'Cannot change order status from {current} to {requested}')


class CancellationWindowClosed(OrderError):
    kind = 'CancellationWindowClosed'
    default_message = 'This order can no longer be cancelled'
