"""
Logging setup for the Interview Assistant.

The API server logs to the console and to a rotating file; the terminal
interview uses ``config.log_config`` instead so its prompts stay readable.
"""
import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from interview_assistant.utils.config import get_logging_config

# Third-party loggers that flood DEBUG output while parsing resumes or calling the LLM
NOISY_LOGGERS = ("pdfminer", "httpx", "httpcore", "urllib3", "pymongo")


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = "logs/interview_assistant.log",
    max_file_size: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5
) -> None:
    """
    Configure the root logger with a console handler and, optionally, a rotating file.

    Args:
        log_level: Level name; defaults to the configured logging level
        log_file: Path to the log file, or None to log to the console only
        max_file_size: Size in bytes at which the log file is rotated
        backup_count: Number of rotated files to keep
    """
    log_cfg = get_logging_config()
    level_name = (log_level or log_cfg.get("level", "INFO")).upper()
    numeric_level = getattr(logging, level_name, None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level_name}")

    formatter = logging.Formatter(
        log_cfg.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        datefmt=log_cfg.get("datefmt", "%Y-%m-%d %H:%M:%S")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_file_size, backupCount=backup_count)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(name)s - %(module)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.info("Logging configured with level: %s", level_name)
