import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    
    # CSRF Configuration
    WTF_CSRF_ENABLED = True
    WTF_CSRF_CHECK_DEFAULT = True
    WTF_CSRF_TIME_LIMIT = 3600  # 1 hour
    
    # Database - Using SQLite for easy local development
    basedir = os.path.dirname(os.path.dirname(__file__))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f'sqlite:///{os.path.join(basedir, "instance", "storefront.db")}'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    
    # Bearer tokens
    AUTH_TOKEN_MAX_AGE = int(os.environ.get('AUTH_TOKEN_MAX_AGE', 7 * 24 * 3600))
    
    # Order lifecycle
    ORDER_AUTO_CONFIRM_MINUTES = int(os.environ.get('ORDER_AUTO_CONFIRM_MINUTES', 30))
    ORDER_CANCEL_WINDOW_MINUTES = int(os.environ.get('ORDER_CANCEL_WINDOW_MINUTES', 30))
    
    # Background task sweep
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'True').lower() == 'true'
    SCHEDULER_SWEEP_SECONDS = int(os.environ.get('SCHEDULER_SWEEP_SECONDS', 60))
    
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    

class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_ECHO = False


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    

class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    SCHEDULER_ENABLED = False
    LOG_LEVEL = 'DEBUG'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
