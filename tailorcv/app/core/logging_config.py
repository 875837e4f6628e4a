"""
Logging configuration for the application.
Application loggers live under "tailorcv.*"; chatty third-party loggers are capped.
"""
import logging
import sys

from tailorcv.app.core.config import settings

# pdfminer logs every content-stream operator at DEBUG; SDK clients log each request at INFO
QUIET_LOGGERS = {
    "pdfminer": logging.WARNING,
    "PIL": logging.INFO,
    "httpx": logging.WARNING,
    "openai": logging.WARNING,
    "botocore": logging.WARNING,
    "boto3": logging.WARNING,
    "urllib3": logging.WARNING,
}


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure root logging from settings.log_level. Returns the package logger."""
    level_val = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=level_val,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name, floor in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(floor, level_val))
    return logging.getLogger("tailorcv")


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, e.g. get_logger("services.usage") -> "tailorcv.services.usage"."""
    return logging.getLogger(f"tailorcv.{name}")
