"""Database models package."""

from .user import User
from .product import Product
from .cart import Cart, CartItem
from .promotion import Promotion
from .order import Order, OrderItem, OrderStatusHistory
from .task import ScheduledTask
from .notification import Notification

__all__ = [
    'User',
    'Product',
    'Cart',
    'CartItem',
    'Promotion',
    'Order',
    'OrderItem',
    'OrderStatusHistory',
    'ScheduledTask',
    'Notification',
]
