"""Application factory and initialization"""
from datetime import date
from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from config import config
from coopledger.cache import PerShareCache

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
per_share_cache = PerShareCache()

class LedgerJSONProvider(DefaultJSONProvider):
    """ISO 8601 dates; Decimals stay strings so amounts never pass through float"""

    @staticmethod
    def default(o):
        if isinstance(o, date):
            return o.isoformat()
        return DefaultJSONProvider.default(o)

def create_app(config_name='default'):
    """Create and configure the Flask application"""
    app = Flask(__name__)
    app.json_provider_class = LedgerJSONProvider
    app.json = LedgerJSONProvider(app)
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    per_share_cache.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    # Register blueprints
    from coopledger.auth import auth_bp
    from coopledger.member import member_bp
    from coopledger.admin import admin_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(member_bp, url_prefix='/member')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    register_error_handlers(app)

    return app

def register_error_handlers(app):
    """JSON bodies for errors raised inside request handlers"""
    from coopledger.ledger import InvalidPaymentAmount

    @app.errorhandler(InvalidPaymentAmount)
    def invalid_payment(error):
        db.session.rollback()
        return jsonify({'error': str(error)}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405
