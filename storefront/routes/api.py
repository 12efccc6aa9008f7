"""Notification endpoints."""

from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from storefront.extensions import db
from storefront.models import Notification

api_bp = Blueprint('api', __name__)


@api_bp.route('/notifications')
@login_required
def get_notifications():
    """Get user notifications."""
    notifications = Notification.query.filter_by(
        user_id=current_user.id
    ).order_by(Notification.created_at.desc(), Notification.id.desc()).limit(20).all()
    
    unread_count = Notification.query.filter_by(
        user_id=current_user.id,
        is_read=False
    ).count()
    
    return jsonify({
        'notifications': [n.to_dict() for n in notifications],
        'unread_count': unread_count
    })


@api_bp.route('/notifications/mark-read', methods=['POST'])
@login_required
def mark_notifications_read():
    """Mark notifications as read."""
    data = request.get_json(silent=True) or {}
    notification_ids = data.get('ids', [])
    
    if notification_ids:
        Notification.query.filter(
            Notification.id.in_(notification_ids),
            Notification.user_id == current_user.id
        ).update({'is_read': True}, synchronize_session=False)
    else:
        # Mark all as read
        Notification.query.filter_by(
            user_id=current_user.id,
            is_read=False
        ).update({'is_read': True})
    
    db.session.commit()
    return jsonify({'success': True})
