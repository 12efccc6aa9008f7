"""Order finalization, discount resolution and deferred status tasks."""

from .errors import (OrderError, ValidationError, EmptyCart, InvalidProduct,
                     InsufficientStock, InvalidPromotion, PromotionMinimumNotMet,
                     InsufficientPoints, PersistenceError, OrderNotFound,
                     AccessDenied, InvalidStatusTransition, CancellationWindowClosed)
from .discounts import DiscountResult, resolve_discount, preview_discount, POINTS_TO_CURRENCY_RATE
from .orders import place_order, list_orders, get_order_for_user, cancel_order, update_order_status
from .tasks import (schedule_order_confirmation, run_due_tasks, confirm_order_if_new,
                    TaskScheduler, task_scheduler)

__all__ = [
    'OrderError',
    'ValidationError',
    'EmptyCart',
    'InvalidProduct',
    'InsufficientStock',
    'InvalidPromotion',
    'PromotionMinimumNotMet',
    'InsufficientPoints',
    'PersistenceError',
    'OrderNotFound',
    'AccessDenied',
    'InvalidStatusTransition',
    'CancellationWindowClosed',
    'DiscountResult',
    'resolve_discount',
    'preview_discount',
    'POINTS_TO_CURRENCY_RATE',
    'place_order',
    'list_orders',
    'get_order_for_user',
    'cancel_order',
    'update_order_status',
    'schedule_order_confirmation',
    'run_due_tasks',
    'confirm_order_if_new',
    'TaskScheduler',
    'task_scheduler',
]
