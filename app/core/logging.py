# app/core/logging.py
import logging
import sys

from pythonjsonlogger import jsonlogger

from app.core.config import Settings


def configure_logging(settings: Settings) -> None:
    """
    JSON lines on stdout, one object per record.

    Every line carries the service name and environment; fields passed
    through `extra=` land as top-level keys.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
            static_fields={"service": settings.app_name, "env": settings.environment},
        )
    )

    root = logging.getLogger()
    root.setLevel(level)
    # reconfiguring (reload, tests) must not duplicate output
    root.handlers = [handler]

    for name in ("uvicorn.error", "uvicorn.access", "app.request"):
        logging.getLogger(name).setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
