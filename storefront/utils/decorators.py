"""Role-based access decorators."""

from functools import wraps
from flask import current_app, jsonify
from flask_login import current_user


def admin_required(f):
    """Decorator to require admin role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return current_app.login_manager.unauthorized()
        if not current_user.is_admin():
            current_app.logger.warning('Admin endpoint %s refused for user %s',
                                       f.__name__, current_user.id)
            return jsonify({'success': False, 'message': 'Access denied. Admin privileges required.'}), 403
        return f(*args, **kwargs)
    return decorated_function
