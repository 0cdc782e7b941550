"""
Strategic Scorecard Service
Environment-specific settings, selected by ``APP_ENV``:

    app.config.from_object(config[os.getenv("APP_ENV", "development")])

Every setting can be overridden through an environment variable of the
same name.
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _env_int(name, default):
    return int(os.getenv(name, str(default)))


def _database_url(default=None):
    raw = os.getenv("DATABASE_URL", "")
    if not raw:
        return default
    # SQLAlchemy 2.x only accepts the postgresql:// scheme
    if raw.startswith("postgres://"):
        return "postgresql://" + raw[len("postgres://"):]
    return raw


POOL_OPTIONS = {
    "pool_pre_ping": True,
    "pool_size": 20,
    "max_overflow": 10,
    "pool_recycle": 300,
    "pool_timeout": 2,
}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY") or secrets.token_hex(32)
    DEBUG = False
    TESTING = False
    LOG_LEVEL = os.getenv("LOG_LEVEL")

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = dict(POOL_OPTIONS)

    # Flask-Limiter storage; memory:// when unset
    REDIS_URL = os.getenv("REDIS_URL")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    MAX_CONTENT_LENGTH = _env_int("MAX_CONTENT_LENGTH", 5 * 1024 * 1024)
    SLOW_REQUEST_MS = _env_int("SLOW_REQUEST_MS", 1000)

    # LLM
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    LLM_DEFAULT_CHAT_MODEL = os.getenv("LLM_DEFAULT_CHAT_MODEL", "gpt-4.1")
    LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))
    CHAT_CONTEXT_MAX_CHARS = _env_int("CHAT_CONTEXT_MAX_CHARS", 50000)
    PROMPTS_DIR = os.getenv("PROMPTS_DIR", os.path.join(basedir, "prompts"))

    INSTRUCTIONS_DIR = os.getenv("INSTRUCTIONS_DIR", os.path.join(basedir, "content"))

    SCORECARD_DEFAULT_YEAR = _env_int("SCORECARD_DEFAULT_YEAR", 2025)
    ADMIN_MAX_PAGE_LIMIT = _env_int("ADMIN_MAX_PAGE_LIMIT", 500)
    IMPORT_DATA_DIR = os.getenv("IMPORT_DATA_DIR", os.path.join(basedir, "data"))


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(
        f"sqlite:///{os.path.join(basedir, 'instance', 'scorecard_dev.db')}"
    )
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {}


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    # in-memory SQLite uses StaticPool, which rejects pool sizing
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False
    OPENAI_API_KEY = None
    SCORECARD_DEFAULT_YEAR = 2025


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = {
        **POOL_OPTIONS,
        "connect_args": {"options": "-c statement_timeout=30000"},
    }

    def __init__(self):
        missing = [
            name for name, value in (
                ("DATABASE_URL", self.SQLALCHEMY_DATABASE_URI),
                ("SECRET_KEY", os.getenv("SECRET_KEY")),
            ) if not value
        ]
        if missing:
            raise RuntimeError(f"Production requires: {', '.join(missing)}")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
