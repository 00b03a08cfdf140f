# backend/staffing/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return int(value)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/staffing.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///staffing.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Delegation limits (days)
    MAX_DELEGATION_DAYS = _int_env("MAX_DELEGATION_DAYS", 90)
    MIN_DELEGATION_DAYS = _int_env("MIN_DELEGATION_DAYS", 1)
    DEFAULT_DELEGATION_DAYS = _int_env("DEFAULT_DELEGATION_DAYS", 30)
    MAX_DELEGATION_EXTENSIONS = _int_env("MAX_DELEGATION_EXTENSIONS", 3)
    DELEGATION_EXPIRY_WARNING_DAYS = _int_env("DELEGATION_EXPIRY_WARNING_DAYS", 7)

    # Transfer limits (days from today)
    MAX_TRANSFER_DAYS = _int_env("MAX_TRANSFER_DAYS", 90)
    DEFAULT_TRANSFER_DAYS = _int_env("DEFAULT_TRANSFER_DAYS", 1)
    TRANSFER_OVERDUE_GRACE_DAYS = _int_env("TRANSFER_OVERDUE_GRACE_DAYS", 1)


# Workflow limits read by the services through current_app.config
LIMIT_KEYS = (
    "MAX_DELEGATION_DAYS",
    "MIN_DELEGATION_DAYS",
    "DEFAULT_DELEGATION_DAYS",
    "MAX_DELEGATION_EXTENSIONS",
    "DELEGATION_EXPIRY_WARNING_DAYS",
    "MAX_TRANSFER_DAYS",
    "DEFAULT_TRANSFER_DAYS",
    "TRANSFER_OVERDUE_GRACE_DAYS",
)
