from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from flask import Flask

from .api import api_bp
from .database import Database
from .logging_config import configure_logging
from .profiles import ProfileRepository


def create_app(config: Optional[Mapping] = None, database: Optional[Database] = None) -> Flask:
    app = Flask(__name__)

    db_path = Path(app.instance_path) / "data.db"

    app.config.setdefault("SQLALCHEMY_DATABASE_URI", f"sqlite:///{db_path}")
    app.config.setdefault("SQLALCHEMY_ECHO", False)
    app.config.setdefault("DEFAULT_BUDGET", 16000)
    app.config.setdefault("DEFAULT_MIN_PERCENT", 5)
    app.config.setdefault("LOG_LEVEL", "INFO")
    app.config.from_prefixed_env("DEBTPLANNER")
    if config:
        app.config.update(config)

    configure_logging(app.config["LOG_LEVEL"])

    if database is None:
        if app.config["SQLALCHEMY_DATABASE_URI"].startswith(f"sqlite:///{app.instance_path}"):
            db_path.parent.mkdir(parents=True, exist_ok=True)
        database = Database(
            app.config["SQLALCHEMY_DATABASE_URI"], echo=app.config["SQLALCHEMY_ECHO"]
        )
    database.connect()

    app.extensions["debtplanner"] = {
        "database": database,
        "profiles": ProfileRepository(
            database,
            default_budget=app.config["DEFAULT_BUDGET"],
            default_min_percent=app.config["DEFAULT_MIN_PERCENT"],
        ),
    }

    app.register_blueprint(api_bp, url_prefix="/api")

    return app


__all__ = ["create_app"]
