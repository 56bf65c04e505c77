import os
from decimal import Decimal


def _optional_decimal(name: str):
    raw = os.getenv(name, "").strip()
    return Decimal(raw) if raw else None


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "bookstore-lending-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///bookstore.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "bookstore-lending-jwt-secret-change-me")

    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = True
    MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@bookstore.local")

    # Lending rules
    DEFAULT_BORROW_PERIOD_DAYS = int(os.getenv("DEFAULT_BORROW_PERIOD_DAYS", "14"))
    MAX_BORROW_PERIOD_DAYS = int(os.getenv("MAX_BORROW_PERIOD_DAYS", "30"))
    MAX_EXTENSION_DAYS = int(os.getenv("MAX_EXTENSION_DAYS", "7"))

    # Fines are billed per started overdue day
    FINE_DAILY_RATE = Decimal(os.getenv("FINE_DAILY_RATE", "1.00"))
    FINE_MAXIMUM = _optional_decimal("FINE_MAXIMUM")

    # Late check job
    SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "1") == "1"
    LATE_CHECK_INTERVAL_MINUTES = int(os.getenv("LATE_CHECK_INTERVAL_MINUTES", "10"))
    DUE_SOON_HOURS = int(os.getenv("DUE_SOON_HOURS", "24"))

    SEARCH_DEBOUNCE_SECONDS = float(os.getenv("SEARCH_DEBOUNCE_SECONDS", "0.5"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SCHEDULER_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    FINE_DAILY_RATE = Decimal("1.00")
    FINE_MAXIMUM = None
