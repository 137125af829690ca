# -*- coding: utf-8 -*-
"""Конфигурация Flask-приложения: .env, подключение к PostgreSQL, лимитер,
CORS и заголовки безопасности."""

from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path
from urllib.parse import quote_plus

from dotenv import find_dotenv, load_dotenv
from flask import redirect, request
from flask_cors import CORS

CORS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# --------------------------- Надёжная загрузка .env ---------------------------

_THIS_FILE = Path(__file__).resolve()
_DEFAULT_DOTENV_DIR = _THIS_FILE.parent
_ENV_EXPLICIT = os.environ.get("ENV_FILE")
_loaded = False

if _ENV_EXPLICIT:
    _loaded = load_dotenv(dotenv_path=_ENV_EXPLICIT)

if not _loaded:
    _loaded = load_dotenv(dotenv_path=_DEFAULT_DOTENV_DIR / ".env")

if not _loaded:
    load_dotenv(find_dotenv(usecwd=True))


# ----------------------------- Утилиты .env ----------------------------------


def env(name: str, default: str | None = None) -> str | None:
    v = os.environ.get(name)
    return v if v not in (None, "") else default


def _bool(v: str | None, default: bool = False) -> bool:
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}


def _list(v: str | None) -> list[str]:
    return [item.strip() for item in (v or "").split(",") if item.strip()]


# --------------------------- Фичефлаги ---------------------------------------

# Подробные ошибки: при True в problem+json попадает текст исключения
SHOW_DETAILED_ERRORS = _bool(env("SHOW_DETAILED_ERRORS"), False)
# Логирование чувствительных данных: при False токены и сессии маскируются
LOG_SENSITIVE = _bool(env("LOG_SENSITIVE"), False)


# ------------------------------ Базовая конфигурация --------------------------


class Config:
    """Общая конфигурация для всех окружений."""

    _default_secret_key = secrets.token_hex(32)
    SECRET_KEY = env("SECRET_KEY", _default_secret_key)

    SHOW_DETAILED_ERRORS = SHOW_DETAILED_ERRORS
    LOG_SENSITIVE = LOG_SENSITIVE

    # Flask / SQLAlchemy
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = _bool(env("SQLALCHEMY_ECHO"), False)
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # JSON-тела небольшие
    JSON_SORT_KEYS = False

    # Логи
    LOGGING_LEVEL = env("LOG_LEVEL", "INFO")

    # Сетевые
    APP_HOST = env("APP_HOST", "127.0.0.1")
    APP_PORT = int(env("APP_PORT", "4000"))

    # Бизнес-календарь: от него считается минимальный срок заявки
    APP_TIMEZONE = env("APP_TIMEZONE", "Europe/Riga")

    # CORS для браузерного клиента; "*" означает любой источник
    CORS_ORIGINS = _list(env("CORS_ORIGINS", "*"))
    CORS_MAX_AGE = int(env("CORS_MAX_AGE", "600"))

    # Безопасность/HTTPS
    SECURITY_HEADERS = False
    FORCE_HTTPS = False
    PREFERRED_URL_SCHEME = env("PREFERRED_URL_SCHEME", "http")

    HSTS_ENABLED = _bool(env("HSTS_ENABLED"), False)
    HSTS_MAX_AGE = int(env("HSTS_MAX_AGE", "31536000"))
    HSTS_INCLUDE_SUBDOMAINS = _bool(env("HSTS_INCLUDE_SUBDOMAINS"), False)
    HSTS_PRELOAD = _bool(env("HSTS_PRELOAD"), False)

    # Flask-Limiter
    RATELIMIT_STORAGE_URI = env("RATELIMIT_STORAGE_URL", "memory://")
    RATELIMIT_HEADERS_ENABLED = _bool(env("RATELIMIT_HEADERS_ENABLED"), True)
    RATELIMIT_DEFAULT = env("RATE_LIMIT_DEFAULT", "300/hour")
    LOGIN_RATE_LIMIT = env("LOGIN_RATE_LIMIT", "10/minute")

    # --------------------------- БД URI сборка -------------------------------

    @staticmethod
    def _build_database_uri() -> str | None:
        """Сборка SQLALCHEMY_DATABASE_URI из .env.

        Приоритет у DATABASE_URL, иначе URI
        собирается из DB_USER/DB_PASSWORD/DB_HOST/DB_PORT/DB_NAME.
        """
        url = env("DATABASE_URL")
        if url:
            if url.startswith("postgres://"):
                url = "postgresql://" + url[len("postgres://") :]
            if url.startswith("postgresql://"):
                url = "postgresql+psycopg2://" + url[len("postgresql://") :]
            return url

        host = env("DB_HOST")
        if not host:
            return None

        user = quote_plus(env("DB_USER", ""))
        password = quote_plus(env("DB_PASSWORD", ""))
        port = env("DB_PORT", "5432")
        name = env("DB_NAME", "")
        if not all([user, name]):
            raise RuntimeError(
                "Не заданы параметры подключения к Postgres (DB_USER/DB_NAME)"
            )
        auth = f"{user}:{password}" if password else user
        return f"postgresql+psycopg2://{auth}@{host}:{port}/{name}"

    # ---------------------------- Инициализация app ---------------------------

    @staticmethod
    def init_app(app) -> None:
        level = getattr(
            logging, str(app.config.get("LOGGING_LEVEL", "INFO")).upper(), logging.INFO
        )
        logging.getLogger().setLevel(level)
        setup_cors(app)


# --------------------------- Развёртывания окружений -------------------------


class DevelopmentConfig(Config):
    DEBUG = True
    LOGGING_LEVEL = env("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    DEBUG = False
    LOGGING_LEVEL = env("LOG_LEVEL", "INFO")

    SECURITY_HEADERS = True
    FORCE_HTTPS = _bool(env("FORCE_HTTPS"), True)
    PREFERRED_URL_SCHEME = "https"

    HSTS_ENABLED = True
    HSTS_INCLUDE_SUBDOMAINS = _bool(env("HSTS_INCLUDE_SUBDOMAINS"), True)
    HSTS_PRELOAD = _bool(env("HSTS_PRELOAD"), True)

    @staticmethod
    def init_app(app) -> None:
        Config.init_app(app)

        if app.config.get(
            "SECRET_KEY"
        ) == Config._default_secret_key and not os.environ.get("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY must be set in production")

        storage_uri = app.config.get("RATELIMIT_STORAGE_URI") or ""
        if storage_uri.startswith("memory://"):
            raise RuntimeError(
                "В продакшене требуется внешний storage для лимитера "
                "(RATELIMIT_STORAGE_URL)"
            )

        https_redirect_middleware(app)
        setup_security_headers(app)
        app.logger.info("HTTPS redirect and security headers enabled (production)")


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    LOGGING_LEVEL = env("LOG_LEVEL", "DEBUG")
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RATELIMIT_STORAGE_URI = "memory://"


# --------------------------- Выбор конфигурации -------------------------------

config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


def get_config():
    """Вернуть КЛАСС конфигурации по FLASK_ENV и собрать URI БД и пул."""
    env_name = os.environ.get("FLASK_ENV", "development").lower()
    cfg_class = config.get(env_name, DevelopmentConfig)

    if cfg_class is not TestingConfig:
        uri = Config._build_database_uri()
        if not uri:
            raise RuntimeError(
                "Не заданы параметры подключения к БД (DATABASE_URL или DB_HOST)"
            )
        cfg_class.SQLALCHEMY_DATABASE_URI = uri
        if not uri.startswith("sqlite"):
            cfg_class.SQLALCHEMY_ENGINE_OPTIONS = {
                "pool_size": int(env("DB_POOL_SIZE", "5")),
                "max_overflow": int(env("DB_MAX_OVERFLOW", "10")),
                "pool_recycle": int(env("DB_POOL_RECYCLE", "280")),
                "pool_pre_ping": True,
            }

    return cfg_class


# ------------------------- Middleware / Security headers ---------------------


def setup_cors(app):
    """CORS для браузерного клиента (Flask-Cors).

    Preflight OPTIONS обрабатывает расширение; разрешены только /api/*.
    """
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS") or []}},
        methods=CORS_METHODS,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )


def https_redirect_middleware(app):
    """Принудительный редирект HTTP → HTTPS в production."""

    @app.before_request
    def _before_request():
        if not app.config.get("FORCE_HTTPS", False):
            return None
        if request.is_secure or app.debug or app.testing:
            return None
        url = request.url.replace("http://", "https://", 1)
        return redirect(url, code=301)


def setup_security_headers(app):
    """Установка security headers (production)."""
    if not app.config.get("SECURITY_HEADERS", False):
        return

    @app.after_request
    def _after_request(response):
        if app.config.get("HSTS_ENABLED", False):
            hsts_value = f"max-age={app.config.get('HSTS_MAX_AGE', 31536000)}"
            if app.config.get("HSTS_INCLUDE_SUBDOMAINS", False):
                hsts_value += "; includeSubDomains"
            if app.config.get("HSTS_PRELOAD", False):
                hsts_value += "; preload"
            response.headers["Strict-Transport-Security"] = hsts_value

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # API отдаёт только JSON
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'"
        )
        return response
