from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_MAX_SIZE = 20 * 1024 * 1024  # 20 MB
LOG_BACKUP_COUNT = 5


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Configure the ``fire_muster`` logger tree.

    Console output always; a size-rotating file when ``log_file`` is set.
    Calling it twice replaces the previous handlers.
    """
    logger = logging.getLogger("fire_muster")
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_MAX_SIZE,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # HTTP server chatter stays out of the drill log.
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    return logger
