"""
lotto_engine/utils/logger.py
Engine logger with console (Rich) + rotating file output.
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from rich.logging import RichHandler

_loggers: dict[str, logging.Logger] = {}


def get_logger(name: str = "lotto_engine") -> logging.Logger:
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level, logging.INFO))

    if not logger.handlers:
        # Console handler (Rich)
        console = RichHandler(rich_tracebacks=True, show_path=False)
        console.setLevel(logging.DEBUG)
        logger.addHandler(console)

        # Rotating file handler, one file per component logger
        log_dir = os.getenv("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        logger.addHandler(file_handler)

    _loggers[name] = logger
    return logger
