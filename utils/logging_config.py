"""Logging configuration for the phantom registration application."""

import logging
import logging.handlers
from pathlib import Path
from datetime import datetime
from typing import Optional
import sys


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        # Color a copy so file handlers sharing the record stay uncolored
        record = logging.makeLogRecord(record.__dict__)
        log_color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{log_color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(
    log_dir: Optional[Path] = None,
    log_level: str = "INFO",
    console_output: bool = True,
    file_output: bool = False,
    verbose: bool = False
) -> None:
    """Set up application logging.

    Args:
        log_dir: Directory to store log files. Defaults to 'logs'.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console_output: Enable console logging.
        file_output: Enable file logging.
        verbose: Enable verbose output (sets DEBUG level).
    """
    if verbose:
        log_level = "DEBUG"

    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_formatter = ColoredFormatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if file_output:
        log_dir = Path(log_dir) if log_dir is not None else Path("logs")
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"registration_{timestamp}.log"

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    logging.debug(f"Logging configured at level {logging.getLevelName(level)}")


class OperationLogger:
    """Logger for timing an operation and reporting how it ended."""

    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None):
        """Initialize operation logger.

        Args:
            operation_name: Name of the operation.
            logger: Logger instance to use.
        """
        self.operation_name = operation_name
        self.logger = logger or logging.getLogger(__name__)
        self.start_time = None

    def __enter__(self):
        """Start operation timing."""
        self.start_time = datetime.now()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log operation completion or failure."""
        duration = datetime.now() - self.start_time

        if exc_type is None:
            self.logger.debug(
                f"Completed {self.operation_name} in {duration.total_seconds():.3f} seconds"
            )
        else:
            self.logger.error(
                f"Failed {self.operation_name} after {duration.total_seconds():.3f} seconds: {exc_val}"
            )
