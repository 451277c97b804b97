"""
Configuration for the Bike Shop Management System

Every value can be overridden from the environment (or a .env file loaded by
run.py / wsgi.py). FLASK_ENV selects the class returned by get_config().
"""
import os
from datetime import timedelta


class Config:
    """Base configuration"""
    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY')

    # Database
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    PREFERRED_URL_SCHEME = 'https'

    # Log files (app.log, security.log) outside debug/testing
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')

    # Shop details used in reminder emails
    SHOP_NAME = os.environ.get('SHOP_NAME', 'Ambikes')
    SHOP_ADDRESS = os.environ.get('SHOP_ADDRESS', '')
    SHOP_PHONE = os.environ.get('SHOP_PHONE', '')
    INSPECTION_DEFAULT_TIME = os.environ.get('INSPECTION_DEFAULT_TIME', '10:00')
    BIRTHDAY_COUPON_CODE = os.environ.get('BIRTHDAY_COUPON_CODE', 'ANIVERSARIO10')

    # Daily reminder job (APScheduler cron, server local time)
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'true').lower() in ('true', '1', 'yes')
    REMINDER_JOB_HOUR = int(os.environ.get('REMINDER_JOB_HOUR', 8))

    @staticmethod
    def init_app(app):
        """Refuse to start without a session secret"""
        if not app.config.get('SECRET_KEY'):
            raise ValueError('SECRET_KEY environment variable is required for security')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    SQLALCHEMY_ECHO = False
    SESSION_COOKIE_SECURE = False
    PREFERRED_URL_SCHEME = 'http'

    @staticmethod
    def init_db_uri():
        """DATABASE_URL when set, else instance/bikeshop.db"""
        if os.environ.get('DATABASE_URL'):
            return os.environ['DATABASE_URL']
        project_root = os.path.abspath(os.path.dirname(__file__))
        instance_path = os.path.join(project_root, 'instance')
        os.makedirs(instance_path, exist_ok=True)
        db_path = os.path.join(instance_path, 'bikeshop.db')
        return f'sqlite:///{db_path}'


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SESSION_COOKIE_SECURE = False
    PREFERRED_URL_SCHEME = 'http'
    SCHEDULER_ENABLED = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    @staticmethod
    def init_db_uri():
        """Get database URI for production"""
        db_url = os.environ.get('DATABASE_URL')
        if not db_url:
            raise ValueError('DATABASE_URL environment variable is required in production')

        # Handle heroku postgres:// -> postgresql://
        if db_url.startswith('postgres://'):
            db_url = db_url.replace('postgres://', 'postgresql://', 1)

        return db_url


def get_config():
    """Get configuration based on environment"""
    env = os.environ.get('FLASK_ENV', 'development').lower()

    if env == 'testing':
        return TestingConfig
    elif env == 'production':
        return ProductionConfig
    else:
        return DevelopmentConfig
