"""Logging setup for the article service.

Each category below gets its level from one Settings field, so SQL echo or
uvicorn access lines can be tuned without touching the workflow engine's
own output. Call ``setup_logging()`` once, from the FastAPI lifespan.
"""

import logging
import sys

from handbook.config import Settings, get_settings

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Settings field -> logger names it controls
_CATEGORY_MAP: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncpg"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_workflow": (
        "handbook.domain",
        "handbook.application",
        "handbook.infrastructure.database",
    ),
}


def setup_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))
    # uvicorn installs its own handlers; scripts and tests may not
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    levels = {}
    for field, names in _CATEGORY_MAP.items():
        level = _parse_level(getattr(settings, field))
        levels[field] = logging.getLevelName(level)
        for name in names:
            logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).debug("Logging configured: root=%s %s", settings.log_level, levels)


def _parse_level(raw: str) -> int:
    """Convert a level name to its logging constant, defaulting to INFO."""
    numeric = getattr(logging, raw.upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO
