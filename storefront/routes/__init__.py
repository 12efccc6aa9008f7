"""Routes package - register all blueprints."""

from flask import Flask


def register_blueprints(app: Flask):
    """Register all blueprints with the application."""
    from storefront.extensions import csrf
    from .orders import orders_bp
    from .cart import cart_bp
    from .promotions import promotions_bp
    from .api import api_bp
    
    # Token-authenticated JSON APIs carry no CSRF cookie
    for blueprint in (orders_bp, cart_bp, promotions_bp, api_bp):
        csrf.exempt(blueprint)
    
    app.register_blueprint(orders_bp, url_prefix='/order')
    app.register_blueprint(cart_bp, url_prefix='/cart')
    app.register_blueprint(promotions_bp, url_prefix='/promotion')
    app.register_blueprint(api_bp, url_prefix='/api')
