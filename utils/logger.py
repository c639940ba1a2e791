# utils/logger.py
import os
import logging
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
PIPELINE_LOGGER_NAME = "ClaimsPipeline"


def get_stage_logger(stage: str) -> logging.Logger:
    """Return the child logger used by a pipeline stage, e.g. ClaimsPipeline.Loader."""
    return logging.getLogger(f"{PIPELINE_LOGGER_NAME}.{stage}")


def setup_logger(
    logger_name: str = PIPELINE_LOGGER_NAME,
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    log_dir: str = "logs",
    console: bool = True
) -> logging.Logger:
    """
    Set up and return a logger with file and console handlers.

    Stage loggers created through get_stage_logger() propagate to the
    ClaimsPipeline logger, so configuring it once covers every stage.

    Args:
        logger_name: Name of the logger (default: ClaimsPipeline)
        log_file: Optional specific log filename (default: {logger_name}.log)
        level: Logging level (default: INFO)
        log_dir: Directory for log files (default: logs)
        console: Also log to stderr (default: True)

    Returns:
        Configured logger instance
    """
    os.makedirs(log_dir, exist_ok=True)

    if log_file is None:
        log_file = f"{logger_name.lower().replace(' ', '_')}.log"

    log_path = os.path.join(log_dir, log_file)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicate lines on repeated setup
    if logger.handlers:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = logging.FileHandler(log_path)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    logger.info(f"Log file is being saved to: {os.path.abspath(log_path)}")

    return logger
