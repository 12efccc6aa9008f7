"""Tests for the durable automatic-confirmation tasks."""

from datetime import datetime, timedelta

import pytest

from storefront.models import Order, ScheduledTask
from storefront.services import tasks
from storefront.services.tasks import run_due_tasks, confirm_order_if_new, TaskScheduler


@pytest.fixture
def placed_order(client, db, user, make_product, fill_cart, auth_headers, checkout_payload):
    fill_cart(user, [(make_product(), 1)])
    response = client.post('/order', json=checkout_payload(), headers=auth_headers(user))
    assert response.status_code == 201
    return db.session.get(Order, response.get_json()['order']['_id'])


def test_nothing_runs_before_due(db, placed_order):
    completed = run_due_tasks(now=placed_order.created_at + timedelta(minutes=29))
    
    assert completed == 0
    assert db.session.get(Order, placed_order.id).status == 'NEW'


def test_confirms_new_order_after_thirty_minutes(db, placed_order):
    order_id = placed_order.id
    due = placed_order.created_at + timedelta(minutes=30, seconds=1)
    
    assert run_due_tasks(now=due) == 1
    
    order = db.session.get(Order, order_id)
    assert order.status == 'CONFIRMED'
    assert [h.status for h in order.status_history] == ['NEW', 'CONFIRMED']
    assert order.status_history[-1].note == 'Order automatically confirmed after 30 minutes'
    assert order.status_history[-1].timestamp == due
    task = ScheduledTask.query.filter_by(order_id=order_id).one()
    assert task.status == 'done'
    assert task.attempts == 1
    assert task.completed_at == due


def test_cancelled_order_is_left_alone(client, db, user, auth_headers, placed_order):
    order_id = placed_order.id
    response = client.put(f'/order/cancel/{order_id}', headers=auth_headers(user))
    assert response.status_code == 200
    
    run_due_tasks(now=datetime.utcnow() + timedelta(minutes=31))
    
    order = db.session.get(Order, order_id)
    assert order.status == 'CANCELED'
    assert [h.status for h in order.status_history] == ['NEW', 'CANCELED']
    assert ScheduledTask.query.filter_by(order_id=order_id).one().status == 'done'


def test_task_runs_once(db, placed_order):
    due = placed_order.created_at + timedelta(minutes=31)
    
    assert run_due_tasks(now=due) == 1
    assert run_due_tasks(now=due) == 0


def test_claimed_task_is_skipped(db, placed_order):
    task = ScheduledTask.query.filter_by(order_id=placed_order.id).one()
    task.status = 'running'
    db.session.commit()
    
    assert run_due_tasks(now=datetime.utcnow() + timedelta(hours=1)) == 0
    assert db.session.get(Order, placed_order.id).status == 'NEW'


def test_failure_is_recorded_and_order_stays_new(db, monkeypatch, placed_order):
    def storage_down(order_id, now=None):
        raise RuntimeError('storage unavailable')
    
    monkeypatch.setitem(tasks.ACTIONS, 'confirm_order', storage_down)
    
    assert run_due_tasks(now=datetime.utcnow() + timedelta(hours=1)) == 0
    
    task = ScheduledTask.query.filter_by(order_id=placed_order.id).one()
    assert task.status == 'failed'
    assert 'storage unavailable' in task.last_error
    assert db.session.get(Order, placed_order.id).status == 'NEW'


def test_confirm_is_noop_for_missing_order(db):
    assert confirm_order_if_new(12345) is False


def test_confirm_is_noop_once_advanced(db, placed_order):
    placed_order.status = 'CONFIRMED'
    db.session.commit()
    
    assert confirm_order_if_new(placed_order.id) is False
    assert len(db.session.get(Order, placed_order.id).status_history) == 1


def test_cli_runs_due_tasks(app, db, placed_order):
    task = ScheduledTask.query.filter_by(order_id=placed_order.id).one()
    task.due_at = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()
    
    result = app.test_cli_runner().invoke(args=['run-due-tasks'])
    
    assert 'Completed 1 task(s).' in result.output
    db.session.expire_all()
    assert db.session.get(Order, placed_order.id).status == 'CONFIRMED'


def test_scheduler_start_and_shutdown(app):
    scheduler = TaskScheduler(app)
    
    scheduler.start()
    try:
        assert scheduler.running
        assert app.extensions['task_scheduler'] is scheduler
    finally:
        scheduler.shutdown(wait=False)
    assert not scheduler.running


def test_scheduler_sweep_job(app, db, placed_order):
    task = ScheduledTask.query.filter_by(order_id=placed_order.id).one()
    task.due_at = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()
    
    TaskScheduler(app)._sweep()
    
    db.session.expire_all()
    assert db.session.get(Order, placed_order.id).status == 'CONFIRMED'
