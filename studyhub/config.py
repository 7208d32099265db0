import os
from dotenv import load_dotenv

load_dotenv()


def _database_url(default=None):
    url = os.getenv("DATABASE_URL") or default
    # Heroku/old url fix
    if url and url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = _database_url()
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # Seconds between two countdown ticks of the study timer
    TIMER_TICK_SECONDS = float(os.getenv("TIMER_TICK_SECONDS", "1.0"))
    # Background tick threads are only started when this is True
    TIMER_START_TICKERS = True
    # Keep CREATE_DB False in production
    CREATE_DB = False


class ProdConfig(BaseConfig):
    SQLALCHEMY_DATABASE_URI = _database_url()


class DevConfig(BaseConfig):
    DEBUG = True
    CREATE_DB = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    SQLALCHEMY_DATABASE_URI = _database_url("sqlite:///dev.db")


class TestConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-secret-key-for-sessions"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    CREATE_DB = True
    TIMER_START_TICKERS = False


class CsrfTestConfig(TestConfig):
    # Test database and tickers, but with CSRF checks switched on
    TESTING = False
