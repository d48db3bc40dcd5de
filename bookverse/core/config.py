# bookverse/core/config.py

import os
from datetime import timedelta


class Config:
    """Settings shared by every environment. Values come from the environment (.env)."""
    # Signs and verifies the API's own access/refresh tokens.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES_MINUTES', 60)))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.getenv('JWT_REFRESH_TOKEN_EXPIRES_DAYS', 14)))

    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

    # Feed: how many recent posts are fetched before ranking, and how fast recency decays.
    FEED_FETCH_LIMIT = int(os.getenv('FEED_FETCH_LIMIT', 50))
    FEED_RECENCY_HALF_LIFE_HOURS = float(os.getenv('FEED_RECENCY_HALF_LIFE_HOURS', 120))

    # Seconds before an OpenLibrary / Internet Archive call is abandoned.
    CATALOG_REQUEST_TIMEOUT = float(os.getenv('CATALOG_REQUEST_TIMEOUT', 10))


class DevelopmentConfig(Config):
    """Local development. Auto-reload and detailed error pages."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')


class TestingConfig(Config):
    """Test runs against the test Firebase project."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'testing-secret-key')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')


class ProductionConfig(Config):
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')


# create_app picks the class by FLASK_ENV.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
