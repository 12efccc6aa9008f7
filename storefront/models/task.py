"""Durable scheduled task model."""

from datetime import datetime
from storefront.extensions import db

PENDING = 'pending'
RUNNING = 'running'
DONE = 'done'
FAILED = 'failed'

CONFIRM_ORDER = 'confirm_order'


class ScheduledTask(db.Model):
    """A delayed action stored in the database and picked up by the sweep."""
    __tablename__ = 'scheduled_tasks'
    __table_args__ = (
        db.Index('ix_scheduled_tasks_status_due', 'status', 'due_at'),
    )
    
    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(50), nullable=False)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    due_at = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PENDING)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime)
    
    order = db.relationship('Order')
    
    def __repr__(self):
        return f'<ScheduledTask {self.action} order={self.order_id} {self.status}>'
