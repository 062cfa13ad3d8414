"""
Logging utilities for cdn_traffic_report CLI.

All log output goes to stderr (through tqdm so the progress bar stays
intact); stdout is reserved for the report itself.
"""

import logging
import time
from pathlib import Path

from cdn_traffic_report.utils.tqdm_logging import TqdmLoggingHandler

PACKAGE_LOGGER = "cdn_traffic_report"


def setup_logging(
    script_name: str,
    log_to_file: bool = False,
    log_dir: Path = Path("logs"),
    verbose: bool = False,
) -> logging.Logger:
    """
    Set up logging for a command.

    Args:
        script_name: Name of the command (for logger and log file naming)
        log_to_file: If True, also write DEBUG and above to a timestamped file
        log_dir: Directory for log files
        verbose: Show DEBUG messages on the console

    Returns:
        Configured logger instance for the command
    """
    console_handler = TqdmLoggingHandler(level=logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    handlers: list[logging.Handler] = [console_handler]

    log_file = None
    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"{script_name}_{timestamp}.log"

        # Flush after each record so partial runs still leave a complete log
        class FlushingFileHandler(logging.FileHandler):
            def emit(self, record):
                super().emit(record)
                self.flush()

        file_handler = FlushingFileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(threadName)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)

    # Command logger and package logger share the same handlers
    for name in (script_name, PACKAGE_LOGGER):
        configured = logging.getLogger(name)
        configured.setLevel(logging.DEBUG)
        configured.handlers = list(handlers)
        configured.propagate = False

    # Suppress noisy external library loggers
    for noisy_logger in ["urllib3", "requests"]:
        logging.getLogger(noisy_logger).setLevel(logging.ERROR)

    logger = logging.getLogger(script_name)
    if log_file:
        logger.info(f"Log file: {log_file}")
    return logger


def print_header(title: str, logger: logging.Logger | None = None):
    """Log a standard section header."""
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info("=" * 70)
    logger.info(title)
    logger.info("=" * 70)
