import logging
import sys

from app.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    settings = get_settings()
    level = logging.getLevelName(str(settings.log_level or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    # Uvicorn reloads can import the app twice; keep a single handler.
    if any(getattr(handler, "_marketplace_handler", False) for handler in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._marketplace_handler = True
    root.addHandler(handler)

    # SQL echo is noisy; enable explicitly when debugging queries.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
