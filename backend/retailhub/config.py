# backend/retailhub/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///retailhub.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Read cache (UX optimization only, never a correctness mechanism)
    CACHE_TYPE = os.environ.get("CACHE_TYPE", "SimpleCache")
    CACHE_DEFAULT_TIMEOUT = 300
    SESSIONS_CACHE_TIMEOUT = 120
    REPORTS_CACHE_TIMEOUT = 300
    FINANCE_CACHE_TIMEOUT = 300
    SUPPLIERS_CACHE_TIMEOUT = 300

    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 200

    # Ranking caps for grouped sums
    TOP_N_PRODUCTS = 10
    TOP_N_SELLERS = 10

    CURRENCY_CODE = "XOF"

    # Self-service return ceilings per role, in XOF. None means uncapped.
    RETURN_MAX_AMOUNTS = {
        "seller": 50_000,
        "manager": 200_000,
        "admin": None,
    }

    AUDIT_RETENTION_DAYS = 90

    # Personal revenue goal shown on seller reports, in XOF
    SELLER_REVENUE_TARGET = 100_000
