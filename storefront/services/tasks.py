"""Deferred order status changes.

Delayed actions are rows in ``scheduled_tasks`` rather than in-process
timers, so a restart loses nothing: whatever is due gets picked up by the
next sweep. The sweep is driven by APScheduler in the web process and can
also be run by hand with ``flask run-due-tasks``.
"""

import logging
from datetime import datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import current_app
from sqlalchemy import update

from storefront.extensions import db
from storefront.models import Order, ScheduledTask
from storefront.models.order import NEW, CONFIRMED
from storefront.models.task import PENDING, RUNNING, DONE, FAILED, CONFIRM_ORDER
from .status import transition_status

logger = logging.getLogger(__name__)


def schedule_order_confirmation(order, delay=None):
    """Queue the automatic NEW -> CONFIRMED step for ``order``.

    The task joins the caller's transaction; it exists only if the order
    is committed.
    """
    if delay is None:
        delay = timedelta(minutes=current_app.config['ORDER_AUTO_CONFIRM_MINUTES'])
    task = ScheduledTask(
        action=CONFIRM_ORDER,
        order_id=order.id,
        due_at=(order.created_at or datetime.utcnow()) + delay,
        status=PENDING
    )
    db.session.add(task)
    return task


def confirm_order_if_new(order_id, now=None):
    """Confirm the order unless it already left NEW. Returns True if confirmed."""
    order = db.session.get(Order, order_id)
    if order is None or order.status != NEW:
        logger.info('Skipping automatic confirmation of order %s (status %s)',
                    order_id, order.status if order else 'missing')
        return False
    minutes = current_app.config['ORDER_AUTO_CONFIRM_MINUTES']
    note = f'Order automatically confirmed after {minutes} minutes'
    if not transition_status(order, CONFIRMED, note, now=now):
        logger.info('Order %s changed before automatic confirmation', order.order_number)
        return False
    logger.info('Order %s automatically confirmed', order.order_number)
    return True


ACTIONS = {
    CONFIRM_ORDER: confirm_order_if_new,
}


def _claim(task_id):
    """Flip one task from pending to running. False if another sweep got it."""
    result = db.session.execute(
        update(ScheduledTask)
        .where(ScheduledTask.id == task_id, ScheduledTask.status == PENDING)
        .values(status=RUNNING, attempts=ScheduledTask.attempts + 1),
        execution_options={'synchronize_session': False}
    )
    db.session.commit()
    return result.rowcount == 1


def _mark_failed(task_id, error):
    try:
        db.session.execute(
            update(ScheduledTask)
            .where(ScheduledTask.id == task_id)
            .values(status=FAILED, last_error=str(error)[:500]),
            execution_options={'synchronize_session': False}
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.error('Could not mark task %s as failed', task_id, exc_info=True)


def run_due_tasks(now=None):
    """Run every pending task that is due. Returns how many completed.

    A failing task is logged and marked failed; its order is left as it
    was for someone to reconcile. Other tasks still run.
    """
    now = now or datetime.utcnow()
    due_ids = [task_id for (task_id,) in db.session.query(ScheduledTask.id).filter(
        ScheduledTask.status == PENDING,
        ScheduledTask.due_at <= now
    ).order_by(ScheduledTask.due_at, ScheduledTask.id).all()]
    
    completed = 0
    for task_id in due_ids:
        if not _claim(task_id):
            continue
        task = db.session.get(ScheduledTask, task_id)
        action, order_id = task.action, task.order_id
        try:
            handler = ACTIONS[action]
            handler(order_id, now=now)
            task.status = DONE
            task.completed_at = now
            db.session.commit()
            completed += 1
        except Exception as e:
            db.session.rollback()
            logger.error('Scheduled task %s (%s) for order %s failed: %s',
                         task_id, action, order_id, e, exc_info=True)
            _mark_failed(task_id, e)
    
    if due_ids:
        logger.info('Task sweep: %d due, %d completed', len(due_ids), completed)
    return completed


class TaskScheduler:
    """Runs ``run_due_tasks`` on an interval in a background thread."""
    
    def __init__(self, app=None):
        self.app = None
        self._scheduler = None
        if app is not None:
            self.init_app(app)
    
    def init_app(self, app):
        self.app = app
        app.extensions['task_scheduler'] = self
    
    @property
    def running(self):
        return self._scheduler is not None and self._scheduler.running
    
    def start(self):
        """Start the sweep job."""
        if self.running:
            logger.warning('TaskScheduler already running')
            return
        seconds = self.app.config['SCHEDULER_SWEEP_SECONDS']
        scheduler = BackgroundScheduler(timezone='UTC')
        scheduler.add_job(
            self._sweep,
            IntervalTrigger(seconds=seconds),
            id='run_due_tasks',
            name='Run due scheduled tasks',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info('TaskScheduler started (every %ss)', seconds)
    
    def shutdown(self, wait=True):
        if self.running:
            self._scheduler.shutdown(wait=wait)
            logger.info('TaskScheduler stopped')
        self._scheduler = None
    
    def _sweep(self):
        with self.app.app_context():
            try:
                run_due_tasks()
            except Exception as e:
                db.session.rollback()
                logger.error('Task sweep failed: %s', e, exc_info=True)


task_scheduler = TaskScheduler()
