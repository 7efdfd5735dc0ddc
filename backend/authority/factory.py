"""Application factory wiring config, extensions, services and CLI."""

from __future__ import annotations

from flask import Flask

from authority.core.config import PLACEHOLDER_JWT_SECRET, BaseConfig, get_config
from authority.core.logger import configure_logging, init_app as init_logging


def _ensure_real_secrets(app: Flask) -> None:
    """Refuse to boot a production app with the placeholder JWT secret."""
    if not app.config.get("REQUIRE_REAL_SECRETS"):
        return
    secret = app.config.get("JWT_SECRET_KEY")
    if not secret or secret == PLACEHOLDER_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set to a real secret in production.")


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    _ensure_real_secrets(app)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from authority.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from authority import wiring

    wiring.init_app(app)

    from authority import cli as app_cli

    app_cli.init_app(app)

    return app
