import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///pharmacy.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BABEL_DEFAULT_LOCALE = os.environ.get('BABEL_DEFAULT_LOCALE') or 'en'
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Pharmacy settings
    CURRENCY = os.environ.get('CURRENCY') or 'TZS'
    EXPIRY_LOOKAHEAD_DAYS = int(os.environ.get('EXPIRY_LOOKAHEAD_DAYS') or 30)
    ALERT_LIMIT = int(os.environ.get('ALERT_LIMIT') or 10)
    PRODUCTS_PER_PAGE = int(os.environ.get('PRODUCTS_PER_PAGE') or 25)
