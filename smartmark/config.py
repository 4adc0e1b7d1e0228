import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "default-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'smartmark.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    METADATA_FETCH_TIMEOUT = float(os.environ.get("METADATA_FETCH_TIMEOUT", "8"))
    METADATA_MAX_BYTES = int(os.environ.get("METADATA_MAX_BYTES", "1000000"))
    SEARCH_TIMEOUT = float(os.environ.get("SEARCH_TIMEOUT", "8"))
    SEARCH_MAX_RESULTS = int(os.environ.get("SEARCH_MAX_RESULTS", "10"))
    SEARXNG_URL = os.environ.get("SEARXNG_URL", "")
    DUCKDUCKGO_ENABLED = os.environ.get("DUCKDUCKGO_ENABLED", "1") == "1"
    CHANGES_PAGE_LIMIT = int(os.environ.get("CHANGES_PAGE_LIMIT", "200"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEARXNG_URL = ""
    DUCKDUCKGO_ENABLED = False
