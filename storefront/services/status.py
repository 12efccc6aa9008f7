"""Conditional order status changes."""

from datetime import datetime

from sqlalchemy import update

from storefront.extensions import db
from storefront.models import Order, Notification


def transition_status(order, new_status, note=None, now=None):
    """Move ``order`` to ``new_status`` if nobody changed it meanwhile.

    The UPDATE is guarded on the status we read, so a cancellation and
    the automatic confirmation can never both win. Returns False when the
    row had already moved on.
    """
    now = now or datetime.utcnow()
    current = order.status
    result = db.session.execute(
        update(Order)
        .where(Order.id == order.id, Order.status == current)
        .values(status=new_status, updated_at=now)
    )
    if result.rowcount != 1:
        return False
    order.add_status_history(new_status, note, timestamp=now)
    db.session.add(Notification.create_order_notification(order.user_id, order, new_status))
    return True
