# backend/shopledger/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/shopledger.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Receipt numbers look like TS-20240501-0001
    RECEIPT_PREFIX = os.environ.get("RECEIPT_PREFIX", "TS")

    # Selling price default for items created by purchase intake (basis points, 13000 = x1.30)
    DEFAULT_MARKUP_BPS = int(os.environ.get("DEFAULT_MARKUP_BPS", "13000"))
    DEFAULT_MIN_STOCK_LEVEL = int(os.environ.get("DEFAULT_MIN_STOCK_LEVEL", "5"))
    DEFAULT_CATEGORY = "General"

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))
