"""
Application factory for the Bike Shop Management System
"""
import os
import logging
from collections.abc import Mapping

from flask import Flask, jsonify

from bikeshop.extensions import db, login_manager
from bikeshop.models import User


def setup_logging(app):
    """Configure logging for the application"""
    if not app.debug and not app.testing:
        log_dir = app.config.get('LOG_DIR', 'logs')
        os.makedirs(log_dir, exist_ok=True)

        # Application logger
        file_handler = logging.FileHandler(os.path.join(log_dir, 'app.log'))
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        logging.getLogger('bikeshop').addHandler(file_handler)
        logging.getLogger('bikeshop').setLevel(logging.INFO)

        # Security logger
        security_handler = logging.FileHandler(os.path.join(log_dir, 'security.log'))
        security_handler.setFormatter(logging.Formatter(
            '%(asctime)s [SECURITY] %(levelname)s: %(message)s'
        ))
        security_handler.setLevel(logging.INFO)
        security_logger = logging.getLogger('security')
        security_logger.addHandler(security_handler)
        security_logger.setLevel(logging.INFO)
        app.security_logger = security_logger

        app.logger.setLevel(logging.INFO)
        app.logger.info('Bike Shop Management System startup')
    else:
        # Development/Testing logging
        app.logger.setLevel(logging.DEBUG)


def _load_config(app, config):
    """Apply a config class, an environment name or a plain mapping."""
    from config import get_config, TestingConfig, ProductionConfig, DevelopmentConfig

    if config is None:
        config = get_config()
    elif isinstance(config, str):
        config = {
            'testing': TestingConfig,
            'production': ProductionConfig,
        }.get(config.lower(), DevelopmentConfig)

    if isinstance(config, Mapping):
        app.config.from_object(TestingConfig if config.get('TESTING') else DevelopmentConfig)
        app.config.from_mapping(config)
        if not app.config.get('SQLALCHEMY_DATABASE_URI'):
            app.config['SQLALCHEMY_DATABASE_URI'] = DevelopmentConfig.init_db_uri()
    else:
        app.config.from_object(config)
        # Set database URI
        if hasattr(config, 'init_db_uri'):
            app.config['SQLALCHEMY_DATABASE_URI'] = config.init_db_uri()

    if not app.config.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')

    from config import Config
    Config.init_app(app)


def create_app(config=None):
    """
    Create and configure the Flask application

    Args:
        config: config class, environment name ('development', 'testing',
            'production') or a mapping of settings. Defaults to FLASK_ENV.
    """
    app = Flask(__name__, instance_relative_config=True)

    _load_config(app, config)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    # User loader for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'message': 'Please log in to access this page.'}), 401

    # Register blueprints
    from bikeshop.blueprints.auth.routes import auth_bp
    from bikeshop.blueprints.core.routes import core_bp
    from bikeshop.blueprints.customers.routes import customers_bp
    from bikeshop.blueprints.inspections.routes import inspections_bp
    from bikeshop.blueprints.sales.routes import sales_bp
    from bikeshop.blueprints.notifications.routes import notifications_bp
    from bikeshop.blueprints.reports.routes import reports_bp
    from bikeshop.blueprints.admin.routes import admin_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(core_bp, url_prefix='')
    app.register_blueprint(customers_bp, url_prefix='/customers')
    app.register_blueprint(inspections_bp, url_prefix='/inspections')
    app.register_blueprint(sales_bp, url_prefix='/sales')
    app.register_blueprint(notifications_bp, url_prefix='/notifications')
    app.register_blueprint(reports_bp, url_prefix='/reports')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    # Setup logging
    setup_logging(app)

    # Add security headers middleware
    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        # HSTS (only in production)
        if not app.debug:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
        return response

    # Trust proxy headers in production
    if not app.debug:
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # Register error handlers
    @app.errorhandler(401)
    def unauthorized_error(error):
        return jsonify({'success': False, 'message': 'Authentication required'}), 401

    @app.errorhandler(403)
    def forbidden_error(error):
        return jsonify({'success': False, 'message': 'You do not have permission to access this resource'}), 403

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'success': False, 'message': 'Not found'}), 404

    @app.errorhandler(429)
    def too_many_requests(error):
        return jsonify({'success': False, 'message': 'Too many attempts. Please try again later.'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'success': False, 'message': 'Internal server error'}), 500

    # Create database tables and initialize settings
    with app.app_context():
        db.create_all()
        initialize_database()

    if app.config.get('SCHEDULER_ENABLED') and not app.testing:
        from bikeshop.services.scheduler import init_scheduler
        init_scheduler(app)

    return app


def initialize_database():
    """
    Initialize database with default settings and admin user if needed
    """
    from bikeshop.models.settings import Setting

    Setting.seed_defaults()

    # Create default admin user if no users exist
    if User.query.count() == 0:
        admin_password = os.environ.get('ADMIN_PASSWORD', 'admin123')
        admin_user = User(
            username='admin',
            full_name='System Administrator',
            role='ADMIN'
        )
        admin_user.set_password(admin_password)
        db.session.add(admin_user)
        logging.getLogger(__name__).warning(
            "Created default admin user 'admin'; change its password after the first login"
        )

    db.session.commit()
