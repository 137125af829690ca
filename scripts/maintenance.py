import click
import redis
from flask import current_app

import routines


def register_maintenance_commands(app):
    """Регистрация CLI-команд обслуживания."""

    @app.cli.command("routines:check")
    def check_routines():
        """Проверяет, что все процедуры каталога есть в базе."""
        missing = routines.missing_routines()
        if missing:
            for name in missing:
                current_app.logger.error(f"Процедура не найдена: {name}")
                click.echo(f"missing: {name}", err=True)
            raise SystemExit(1)

        current_app.logger.info(f"Все процедуры на месте: {len(routines.ROUTINES)}")
        click.echo(f"ok: {len(routines.ROUTINES)} routines")

    @app.cli.command("limiter:check")
    @click.option("--timeout", default=2.0, show_default=True, help="Таймаут, сек")
    def check_limiter(timeout: float):
        """Пингует хранилище лимитера (Redis)."""
        storage_uri = current_app.config.get("RATELIMIT_STORAGE_URI") or "memory://"
        if storage_uri.startswith("memory://"):
            click.echo("ok: in-memory storage")
            return

        if not storage_uri.startswith(("redis://", "rediss://")):
            click.echo(f"skip: unsupported storage {storage_uri.split('://')[0]}")
            return

        try:
            redis.StrictRedis.from_url(storage_uri, socket_timeout=timeout).ping()
        except redis.RedisError as e:
            current_app.logger.error(f"Хранилище лимитера недоступно: {e}")
            click.echo(f"fail: {e}", err=True)
            raise SystemExit(1)

        current_app.logger.info("Хранилище лимитера доступно")
        click.echo("ok: redis")
