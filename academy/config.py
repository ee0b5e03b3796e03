import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default):
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "default-secret")
    FLASK_ENV = os.getenv("FLASK_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///academy.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Fixed-size pool: extra requests wait for a connection instead of failing fast
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": int(os.getenv("DB_POOL_SIZE", 10)),
        "max_overflow": 0,
        "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", 30)),
        "pool_pre_ping": True,
    }

    # Tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-secret-change-me-in-production!")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("WEB_TOKEN_HOURS", 24)))
    VIDEO_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("VIDEO_TOKEN_SECONDS", 60)))
    MOBILE_SESSION_EXPIRES = timedelta(days=7)
    MOBILE_REFRESH_EXPIRES = timedelta(days=30)
    OTP_EXPIRES = timedelta(minutes=10)

    # Mail Configuration
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = _env_flag("MAIL_USE_TLS", "True")
    MAIL_USE_SSL = _env_flag("MAIL_USE_SSL", "False")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "Academy <no-reply@academy.local>")
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@academy.local")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = "testing-secret-key-that-is-long-enough"
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "Academy <no-reply@academy.test>"
    ADMIN_EMAIL = "admin@academy.test"
