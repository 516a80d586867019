# util/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional
from config.settings import settings
from util.enums import Color

logging.captureWarnings(True)

TEXT_FMT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
DATE_FMT = "%Y-%m-%dT%H:%M:%S%z"


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": Color.CYAN.value,
        "INFO": Color.GREEN.value,
        "WARNING": Color.YELLOW.value,
        "ERROR": Color.RED.value,
        "CRITICAL": Color.BOLD.value + Color.RED.value,
    }
    RESET = Color.RESET.value

    def format(self, record: logging.LogRecord) -> str:
        # Colour a copy of the level name; file handlers see the original record.
        plain = record.levelname
        record.levelname = f"{self.COLORS.get(plain, self.RESET)}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def _console_handler(level: int) -> logging.Handler:
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(ColoredFormatter(TEXT_FMT, datefmt=DATE_FMT))
    return ch


def _file_handler(level: int) -> logging.Handler:
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    fh = RotatingFileHandler(
        os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(TEXT_FMT, datefmt=DATE_FMT))
    return fh


def init_logger(level_name: Optional[str] = None) -> logging.Logger:
    """
    Idempotent logger init for processes embedding the RLZ store:
    - Always logs to stdout, levels coloured.
    - Rotating file under LOG_DIR only when settings.LOG_TO_FILE is True.
    - Level from `level_name`, else settings.LOG_LEVEL.
    """
    root = logging.getLogger()
    if getattr(root, "_rlz_inited", False):
        return logging.getLogger(settings.LOGGER_NAME)

    level = getattr(logging, (level_name or settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    root.setLevel(level)

    # Drop default handlers to avoid duplicate lines
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(_console_handler(level))
    if settings.LOG_TO_FILE:
        root.addHandler(_file_handler(level))

    # Transport chatter stays out of the store logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    root._rlz_inited = True  # type: ignore[attr-defined]
    logger = logging.getLogger(settings.LOGGER_NAME)
    logger.debug("logger.initialized level=%s", logging.getLevelName(level))
    return logger
