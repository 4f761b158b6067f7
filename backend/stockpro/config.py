# backend/stockpro/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in {"1", "true", "yes"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockpro.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockpro.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session tokens (JWT, HS256)
    JWT_SECRET = os.environ.get("JWT_SECRET", "dev-jwt-secret-change-me")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_DAYS = int(os.environ.get("JWT_EXPIRES_DAYS", 7))
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "auth-token")
    AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE")
    PASSWORD_HASH_ROUNDS = int(os.environ.get("PASSWORD_HASH_ROUNDS", 12))

    # Self-registered accounts start as a trial
    TRIAL_DAYS = int(os.environ.get("TRIAL_DAYS", 7))

    # Base URL used to build the simulated payment redirect
    PUBLIC_URL = os.environ.get("PUBLIC_URL", "http://localhost:3000")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    REPORT_TOP_N = int(os.environ.get("REPORT_TOP_N", 5))
    REPORT_MAX_RANGE_DAYS = int(os.environ.get("REPORT_MAX_RANGE_DAYS", 365))
