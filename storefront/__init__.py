"""Flask application factory."""

import os
from flask import Flask, jsonify
from .config import config
from .extensions import db, migrate, login_manager, csrf


def create_app(config_name=None):
    """Create and configure the Flask application."""
    if config_name is None:
        config_name = os.environ.get('FLASK_CONFIG', 'development')
    
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.logger.setLevel(app.config['LOG_LEVEL'])
    
    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)

    # SQLite database lives in the instance folder
    os.makedirs(app.instance_path, exist_ok=True)

    from .services.tasks import task_scheduler
    task_scheduler.init_app(app)
    
    # Register blueprints
    from .routes import register_blueprints
    register_blueprints(app)
    
    from .commands import register_commands
    register_commands(app)
    
    # Bearer-token authentication for Flask-Login
    from .models import User
    
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))
    
    @login_manager.request_loader
    def load_user_from_request(request):
        scheme, _, token = request.headers.get('Authorization', '').partition(' ')
        if scheme.lower() != 'bearer' or not token.strip():
            return None
        return User.verify_auth_token(token.strip())
    
    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'message': 'Authentication required'}), 401
    
    # Error handlers
    from .services.errors import OrderError
    
    @app.errorhandler(OrderError)
    def order_error(error):
        return jsonify(error.to_dict()), error.status_code
    
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'success': False, 'message': 'Not found'}), 404
    
    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({'success': False, 'message': 'Method not allowed'}), 405
    
    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'success': False, 'message': 'Internal server error'}), 500
    
    return app
