import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///coopledger.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(hours=8)
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Pagination
    ITEMS_PER_PAGE = 25

    # Application defaults
    DEFAULT_CURRENCY = 'PHP'
    DEFAULT_CURRENCY_SYMBOL = '₱'
    DEFAULT_APP_NAME = 'CoopLedger'

    # Ledger defaults, copied into SystemSettings on first use
    DEFAULT_SHARE_VALUE = int(os.environ.get('DEFAULT_SHARE_VALUE', 250))
    DEFAULT_MIN_SHARES = 1
    DEFAULT_MAX_SHARES = 100
    DEFAULT_MIN_LOAN_AMOUNT = int(os.environ.get('DEFAULT_MIN_LOAN_AMOUNT', 1000))
    DEFAULT_MAX_LOAN_AMOUNT = int(os.environ.get('DEFAULT_MAX_LOAN_AMOUNT', 50000))
    DEFAULT_MEMBER_MONTHLY_RATE_BPS = 500  # 5% per month

class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_ECHO = False

class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Strict'

    # Database optimization for production
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
        'pool_size': 10,
        'max_overflow': 20
    }

class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}

config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
