import logging
import logging.config
import os
from pathlib import Path
from typing import Dict, List


# Named loggers used outside the ``warroom`` package tree.
SECURITY_LOGGERS = ("auth", "auth_module", "audit")


def _rotating(path: Path, level: str, max_bytes: int, backup_count: int) -> Dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "default",
        "filename": str(path),
        "maxBytes": max_bytes,
        "backupCount": backup_count,
        "level": level,
        "encoding": "utf8",
    }


def _logger(handlers: List[str], level: str = "INFO") -> Dict:
    return {"handlers": handlers, "level": level, "propagate": False}


def build_logging_config(log_dir: Path) -> Dict:
    """
    dictConfig for the service. Everything goes to the console and
    ``app.log``; errors also land in ``error.log``. Room activity (joins,
    closes, rejected writes) is copied to ``rooms.log`` so a session can be
    reviewed after it ends.
    """
    max_bytes = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
    backup_count = int(os.getenv("LOG_BACKUP_COUNT", "3"))
    room_level = os.getenv("LOG_LEVEL", "DEBUG").upper()

    everywhere = ["console", "file_app", "file_error"]
    loggers = {
        "": {**_logger(everywhere), "propagate": True},
        "uvicorn": _logger(["console", "file_app"]),
        "uvicorn.error": _logger(["console", "file_error"]),
        "database": _logger(everywhere),
        "warroom": _logger(everywhere, room_level),
        "warroom.services": _logger(everywhere + ["file_rooms"], room_level),
        "warroom.data": _logger(everywhere + ["file_rooms"], room_level),
    }
    for name in SECURITY_LOGGERS:
        loggers[name] = _logger(["console", "file_app"])

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": "INFO",
            },
            "file_app": _rotating(log_dir / "app.log", "INFO", max_bytes, backup_count),
            "file_error": _rotating(
                log_dir / "error.log", "ERROR", max_bytes, backup_count
            ),
            "file_rooms": _rotating(
                log_dir / "rooms.log", "INFO", max_bytes, backup_count
            ),
        },
        "loggers": loggers,
    }


def setup_logging():
    """Configure logging; LOG_DIR (default ``logs``) holds the log files."""
    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_dir))
    logging.getLogger("warroom").info("Logging configured in %s", log_dir)
