"""
Logging configuration for production
"""
import logging
import sys
from pathlib import Path
from lupora.config import settings

log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
date_format = "%Y-%m-%d %H:%M:%S"


def configure_logging(logs_dir: Path = Path("logs")) -> logging.Logger:
    """Install console and file handlers on the root logger (idempotent)"""
    root_logger = logging.getLogger()
    if getattr(root_logger, "_lupora_configured", False):
        return root_logger

    logs_dir.mkdir(exist_ok=True)
    root_logger.setLevel(logging.INFO if not settings.DEBUG else logging.DEBUG)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(log_format, date_format))

    # File handler for errors
    error_handler = logging.FileHandler(logs_dir / "error.log")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(log_format, date_format))

    # File handler for all logs
    file_handler = logging.FileHandler(logs_dir / "app.log")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(log_format, date_format))

    root_logger.addHandler(console_handler)
    root_logger.addHandler(error_handler)
    root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    root_logger._lupora_configured = True
    return root_logger
