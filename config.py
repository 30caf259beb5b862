import os
from datetime import timedelta

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))


def env_flag(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "greenpath-dev-secret")

    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL", f"sqlite:///{os.path.join(BASE_DIR, 'greenpath.db')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" for the database-backed store, "memory" for the fixture store
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql")
    STORAGE_RETRY_ATTEMPTS = int(os.getenv("STORAGE_RETRY_ATTEMPTS", 3))
    STORAGE_RETRY_BACKOFF = float(os.getenv("STORAGE_RETRY_BACKOFF", 0.2))
    SEED_ON_START = env_flag("SEED_ON_START", False)

    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@greenpath.com")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "ChangeMe0931@")

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "greenpath-dev-jwt-secret-change-me")
    JWT_TOKEN_LOCATION = ["cookies", "headers"]
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)
    JWT_COOKIE_SECURE = env_flag("JWT_COOKIE_SECURE", False)
    JWT_COOKIE_SAMESITE = "Lax"
    JWT_COOKIE_CSRF_PROTECT = env_flag("JWT_COOKIE_CSRF_PROTECT", True)

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")

    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = env_flag("MAIL_USE_TLS", True)
    MAIL_USE_SSL = env_flag("MAIL_USE_SSL", False)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@greenpath.com")
    MAIL_SUPPRESS_SEND = env_flag("MAIL_SUPPRESS_SEND", False)

    # seconds a mailed code, and then the verified mark, stay usable
    EMAIL_OTP_TTL = int(os.getenv("EMAIL_OTP_TTL", 600))
    EMAIL_VERIFIED_TTL = int(os.getenv("EMAIL_VERIFIED_TTL", 1800))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    STORAGE_BACKEND = "memory"
    STORAGE_RETRY_BACKOFF = 0
    SEED_ON_START = False
    JWT_SECRET_KEY = "greenpath-testing-jwt-secret-with-enough-bytes"
    JWT_COOKIE_CSRF_PROTECT = False
    MAIL_SUPPRESS_SEND = True
    LOG_LEVEL = "WARNING"
