"""
Logging setup for the MortiScope server.

Everything goes through the standard ``logging`` module. ``setup_logging`` installs
one console handler on the root logger and, when ``ENABLE_FILE_LOGGING`` is on, a
rotating ``mortiscope.log`` under ``LOG_FILE_DIR``. Noisy libraries (SQLAlchemy,
botocore, Pillow) are held at WARNING through ``MODULE_LOG_LEVELS``.

Modules only ever call ``get_logger(__name__)``.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "mortiscope.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "line": %(lineno)d, "message": "%(message)s"}'
)

FORMATS = {"simple": SIMPLE_FORMAT, "detailed": DETAILED_FORMAT, "json": JSON_FORMAT}

MODULE_LOG_LEVELS = {
    "mortiscope": "INFO",
    "mortiscope.server.api": "DEBUG",
    "mortiscope.server.services": "DEBUG",
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "aiosqlite": "WARNING",
    "httpx": "WARNING",
    "botocore": "WARNING",
    "boto3": "WARNING",
    "s3transfer": "WARNING",
    "PIL": "WARNING",
    "uvicorn.access": "INFO",
}


def _settings():
    # Imported late: the settings object validates the environment on import.
    from mortiscope.server.core.config import settings

    return settings


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
    log_dir: Optional[str] = None,
) -> None:
    """
    Configure the root logger.

    Arguments left as None fall back to ``MORTISCOPE_LOG_LEVEL``, ``LOG_FORMAT`` and
    ``LOG_FILE_DIR``. ``enable_file`` can only switch file logging off; the
    ``ENABLE_FILE_LOGGING`` setting has the final say.

    Calling it again replaces the handlers installed by the previous call.
    """
    settings = _settings()
    level = (log_level or settings.log_level).upper()
    fmt_name = log_format or settings.log_format
    formatter = logging.Formatter(FORMATS.get(fmt_name, DETAILED_FORMAT), datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    log_file: Optional[Path] = None
    if enable_file and settings.enable_file_logging:
        directory = Path(log_dir or settings.log_file_dir)
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / LOG_FILE_NAME
        file_handler = RotatingFileHandler(log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(module_level)

    root.info(f"Logging configured: level={level}, format={fmt_name}, file={log_file or 'disabled'}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
