# backend/shopdesk/config.py
from __future__ import annotations
import os


def _split(value: str | None) -> set[str]:
    return {v.strip() for v in (value or "").split(",") if v.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/shopdesk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # IANA zone used to decide what "today" is for invoice and expiry dates.
    # Unset means the server's local calendar day.
    SHOP_TIMEZONE = os.environ.get("SHOP_TIMEZONE") or None

    WALK_IN_CUSTOMER = os.environ.get("WALK_IN_CUSTOMER", "Walk-in Customer")

    INVOICE_NUMBER_PREFIX = os.environ.get("INVOICE_NUMBER_PREFIX", "INV")
    INVOICE_NUMBER_PAD = int(os.environ.get("INVOICE_NUMBER_PAD", "5"))
    SUPPLIER_INVOICE_PREFIX = os.environ.get("SUPPLIER_INVOICE_PREFIX", "SUPINV")
    SUPPLIER_INVOICE_PAD = int(os.environ.get("SUPPLIER_INVOICE_PAD", "5"))

    # Identity headers set by the authenticating gateway in front of the API
    USER_ID_HEADER = os.environ.get("USER_ID_HEADER", "X-User-Id")
    USER_ROLE_HEADER = os.environ.get("USER_ROLE_HEADER", "X-User-Role")

    CORS_ALLOWED_ORIGINS = _split(os.environ.get("CORS_ALLOWED_ORIGINS")) or {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    }


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SHOP_TIMEZONE = "UTC"
    LOG_LEVEL = "DEBUG"
