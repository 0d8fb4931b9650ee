"""
Centralized logging for the 2048 learners.

Usage:
    from deep2048.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Training started")
    logger.debug("Synced main network")

Configuration:
    LOG_LEVEL in config.py (or --log-level on the command line) sets verbosity:
    - DEBUG: Network syncs, per-episode details
    - INFO: Progress summaries, saves and loads (default)
    - WARNING: Unexpected but recoverable situations
    - ERROR: Errors only

    Modules that log before setup_logging() is called get console-only
    defaults. Files are only written when main.py asks for them.
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


ROOT_LOGGER_NAME = 'deep2048'


class LogLevel(Enum):
    """Log levels for configuration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    @classmethod
    def from_name(cls, name: str) -> 'LogLevel':
        """Look up a level by (case-insensitive) name, e.g. 'debug'."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown log level {name!r}, expected one of {[level.name for level in cls]}"
            ) from None


_initialized = False
_file_handler: Optional[logging.FileHandler] = None


class ColoredFormatter(logging.Formatter):
    """Adds ANSI colours to the level name when writing to a terminal."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)
        # Colour a copy of the level name, other handlers share the record
        levelname = record.levelname
        color = self.COLORS.get(levelname, self.COLORS['RESET'])
        record.levelname = f"{color}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(
    log_dir: str = 'logs',
    level: LogLevel = LogLevel.INFO,
    console_output: bool = True,
    file_output: bool = False,
    log_filename: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Initialize the project logger.

    Args:
        log_dir: Directory for log files
        level: Minimum log level to capture
        console_output: Whether to output to the console
        file_output: Whether to also write a log file
        log_filename: Custom log filename (default: deep2048_YYYYMMDD_HHMMSS.log)
        force: Reconfigure even if logging was already set up
    """
    global _initialized, _file_handler

    if _initialized and not force:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _file_handler = None

    fmt = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level.value)
        console_handler.setFormatter(ColoredFormatter(fmt, use_colors=True))
        root_logger.addHandler(console_handler)

    if file_output:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        if log_filename is None:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            log_filename = f'deep2048_{timestamp}.log'

        _file_handler = logging.FileHandler(log_path / log_filename, mode='a', encoding='utf-8')
        _file_handler.setLevel(logging.DEBUG)  # Capture everything in file
        _file_handler.setFormatter(logging.Formatter(fmt))
        root_logger.addHandler(_file_handler)

    _initialized = True
    root_logger.debug(f"Logging initialized (level={level.name}, file={file_output})")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module, under the 'deep2048' namespace.

    Args:
        name: Module name (typically __name__)

    Example:
        logger = get_logger(__name__)
        logger.info("Message")
    """
    if not _initialized:
        setup_logging()

    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def get_log_path() -> Optional[Path]:
    """Get the current log file path."""
    if _file_handler is not None:
        return Path(_file_handler.baseFilename)
    return None


def log_training_metrics(
    episode: int,
    score: float,
    epsilon: float,
    total_reward: Optional[float] = None,
    steps: Optional[int] = None,
    avg_score: Optional[float] = None,
) -> None:
    """
    Log one episode's training metrics on a single line.

    Args:
        episode: Episode number
        score: Episode score (highest tile for 2048)
        epsilon: Current exploration rate
        total_reward: Summed reward of the episode (if available)
        steps: Moves in the episode (if available)
        avg_score: Running average score (if available)
    """
    logger = get_logger('training')

    metrics = [
        f"ep={episode}",
        f"score={score:.1f}",
        f"eps={epsilon:.4f}",
    ]

    if total_reward is not None:
        metrics.append(f"reward={total_reward:.1f}")
    if steps is not None:
        metrics.append(f"steps={steps}")
    if avg_score is not None:
        metrics.append(f"avg_score={avg_score:.1f}")

    logger.info(" | ".join(metrics))


def log_model_event(event: str, path: str, **kwargs) -> None:
    """
    Log a network save/load.

    Args:
        event: Event type ('save', 'load', 'checkpoint')
        path: Network file path
        **kwargs: Additional context (e.g., episode, score)
    """
    logger = get_logger('model')

    extra = " | ".join(f"{k}={v}" for k, v in kwargs.items())
    if extra:
        logger.info(f"{event.upper()} | {path} | {extra}")
    else:
        logger.info(f"{event.upper()} | {path}")
