"""
Logging configuration for the Prominent Colors service.
"""
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from prominent_colors.core.config import settings


class CustomFormatter(logging.Formatter):
    """
    Custom formatter with colored output for console logging.
    """
    # ANSI color codes
    GREY = "\x1b[38;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"

    LINE = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"

    FORMATS = {
        logging.DEBUG: f"{GREY}{LINE}{RESET}",
        logging.INFO: f"{GREEN}{LINE}{RESET}",
        logging.WARNING: f"{YELLOW}{LINE}{RESET}",
        logging.ERROR: f"{RED}{LINE}{RESET}",
        logging.CRITICAL: f"{BOLD_RED}{LINE}{RESET}",
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno, self.LINE)
        formatter = logging.Formatter(log_fmt, datefmt="%Y-%m-%d %H:%M:%S")
        return formatter.format(record)


def setup_logging(log_dir: str = settings.LOG_DIR, level: str = settings.LOG_LEVEL) -> logging.Logger:
    """
    Set up logging for the service.

    Creates the log directory if it doesn't exist and configures both console
    and file logging. Every run gets its own rotating log file.
    """
    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    current_time = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"prominent_colors_{current_time}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    if root_logger.handlers:
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(CustomFormatter())
    console_handler.setLevel(level)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10485760,  # 10MB
        backupCount=5,
        encoding="utf-8"
    )
    file_format = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_format)
    file_handler.setLevel(logging.DEBUG)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger("prominent_colors")
    logger.info(f"Log file: {log_file}")

    return logger

# Create the application logger
logger = setup_logging()
