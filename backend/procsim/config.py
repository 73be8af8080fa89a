# backend/procsim/config.py
from __future__ import annotations
import os


def _optional_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/procsim.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///procsim.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Fixed seed makes market ticks reproducible (None = system entropy)
    MARKET_RNG_SEED = _optional_int("MARKET_RNG_SEED")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Frontend dev servers allowed to call the API from the browser
    CORS_ALLOWED_ORIGINS = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:4173",
        "http://127.0.0.1:4173",
    }
