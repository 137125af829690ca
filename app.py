import json
import logging
import logging.config
import os
import time
import uuid
from datetime import datetime, timezone

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request

from extensions import limiter

if os.path.exists(".env.local"):
    load_dotenv(".env.local")
else:
    load_dotenv()

from config import get_config  # noqa: E402
from database import db  # noqa: E402
from error_handler import register_error_handlers  # noqa: E402
from scripts.maintenance import register_maintenance_commands  # noqa: E402
from security_utils import safe_log, scrub_payload  # noqa: E402
from session_security import SessionSecurity, setup_session_security  # noqa: E402
from validation.json_schema import init_json_validation  # noqa: E402

# ------------------ Создание приложения ------------------
app = Flask(__name__)

# Класс конфигурации выбирается по FLASK_ENV
config_class = get_config()
app.config.from_object(config_class)

# CORS, HTTPS-редирект и проверки продакшена
if hasattr(config_class, "init_app"):
    config_class.init_app(app)


# ------------------ Логирование: app.log, консоль, audit.log ------------------
os.makedirs("logs", exist_ok=True)
log_level = str(app.config.get("LOGGING_LEVEL", "INFO")).upper()

# Повторный импорт (flask CLI, тесты) не должен дублировать обработчики
if not getattr(app, "_logging_configured", False):
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,  # не гасим сторонние логгеры
            "formatters": {
                "default": {
                    "format": (
                        "%(asctime)s %(levelname)s %(name)s: %(message)s "
                        "[in %(pathname)s:%(lineno)d]"
                    )
                },
                "audit_json": {"()": "logging.Formatter", "format": "%(message)s"},
            },
            "handlers": {
                "file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": "logs/app.log",
                    "maxBytes": 10 * 1024 * 1024,
                    "backupCount": 10,
                    "formatter": "default",
                    "level": log_level,
                },
                "console": {
                    "class": "logging.StreamHandler",
                    # Используем сырое stdout, чтобы избежать рекурсии.
                    "stream": "ext://sys.__stdout__",
                    "formatter": "default",
                    "level": log_level,
                },
                "audit_file": {
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": "logs/audit.log",
                    "maxBytes": 10 * 1024 * 1024,
                    "backupCount": 20,
                    "formatter": "audit_json",
                    "level": "INFO",
                },
            },
            "loggers": {
                "audit": {
                    "level": "INFO",
                    "handlers": ["audit_file"],
                    "propagate": False,
                }
            },
            "root": {"level": log_level, "handlers": ["file", "console"]},
        }
    )

    # Привязываем app.logger к root-хендлерам без лишней болтовни
    app.logger.handlers = logging.getLogger().handlers
    app.logger.setLevel(log_level)
    app.logger.propagate = False

    app._logging_configured = True  # маркер, чтобы не конфигурировать повторно

audit_logger = logging.getLogger("audit")
app.logger.info("Repair intake API startup")

# ------------------ Расширения ------------------
db.init_app(app)

storage_uri = app.config.get("RATELIMIT_STORAGE_URI") or "memory://"
if storage_uri.startswith("memory://") and not app.testing:
    app.logger.warning(
        "RATELIMIT_STORAGE_URL не задан, лимитер будет работать в памяти "
        "(не рекомендуется в проде)."
    )
limiter.init_app(app)


# Preflight CORS не расходует лимит
@limiter.request_filter
def _skip_preflight():
    return request.method == "OPTIONS"


app.logger.info(f"Limiter backend: {storage_uri.split('://')[0]}")

app.logger.info(f"Окружение: {os.environ.get('FLASK_ENV', 'development')}")
app.logger.info(f"Debug режим: {app.debug}")

# CLI-команды
register_maintenance_commands(app)


# Healthcheck
@app.get("/api/health")
@limiter.exempt
def health():
    return jsonify({"status": "ok"})


# ------------------ Логирование запросов/ответов ------------------
@app.before_request
def log_request_info():
    g.request_start = time.time()
    g.request_id = str(uuid.uuid4())

    json_body = request.get_json(silent=True) if request.is_json else None
    safe_log(
        app.logger,
        logging.INFO,
        f"Запрос {request.method} {request.path} от "
        f"{SessionSecurity.get_client_ip()} id={g.request_id}",
    )

    audit_event = {
        "type": "request",
        "ts": time.time(),
        "ts_iso": datetime.now(timezone.utc).isoformat(),
        "request_id": g.request_id,
        "ip": SessionSecurity.get_client_ip(),
        "method": request.method,
        "path": request.path,
        "query": scrub_payload(request.args.to_dict(flat=True)),
        "json": scrub_payload(json_body),
        "has_session_token": isinstance(json_body, dict)
        and bool(json_body.get("sessionToken")),
        "headers": {
            "User-Agent": request.headers.get("User-Agent"),
            "Origin": request.headers.get("Origin"),
        },
    }
    audit_logger.info(json.dumps(audit_event, ensure_ascii=False, default=str))


@app.after_request
def log_response_info(response):
    duration = time.time() - g.get("request_start", time.time())
    safe_log(
        app.logger,
        logging.INFO,
        f"Ответ {response.status_code} для {request.method} {request.path} "
        f"время={duration:.3f}с",
    )

    audit_event = {
        "type": "response",
        "ts": time.time(),
        "ts_iso": datetime.now(timezone.utc).isoformat(),
        "request_id": getattr(g, "request_id", None),
        "status": response.status_code,
        "path": request.path,
        "method": request.method,
        "duration_ms": int(duration * 1000),
    }
    audit_logger.info(json.dumps(audit_event, ensure_ascii=False))
    response.headers["X-Request-ID"] = getattr(g, "request_id", "")
    return response


# ------------------ Регистрация блюпринтов ------------------
blueprints = [
    ("routes.auth_routes", "auth_bp", "/api"),
    ("routes.application_routes", "application_bp", "/api"),
    ("routes.admin_routes", "admin_bp", "/api"),
    ("routes.category_routes", "category_bp", "/api"),
    ("routes.user_routes", "user_bp", "/api"),
]

for module, bp_name, prefix in blueprints:
    mod = __import__(module, fromlist=[bp_name])
    bp = getattr(mod, bp_name)
    app.register_blueprint(bp, url_prefix=prefix)
    safe_log(
        app.logger,
        logging.DEBUG,
        f"Зарегистрирован blueprint {bp_name} по префиксу {prefix}",
    )

# Регистрация обработчиков ошибок
register_error_handlers(app)
app.logger.info("Error handlers registered successfully")

# Сессии по sessionToken
setup_session_security(app)

# Валидация JSON по JSON Schema (draft 2020-12)
init_json_validation(app)
app.logger.info("JSON Schema validation initialized")


if __name__ == "__main__":
    app.logger.info("Starting Flask development server...")
    app.run(
        host=app.config.get("APP_HOST", "127.0.0.1"),
        port=app.config.get("APP_PORT", 4000),
        debug=app.config.get("DEBUG", True),
    )
