"""Structured logging configuration using structlog.

Every module logs snake_case events with keyword context; the CLI binds the
running command so that all events of one invocation can be grouped:

    from docindex.observability.logging import bind_command, get_logger

    logger = get_logger(__name__)
    bind_command("ask-pdf", pdf_path="report.pdf")
    logger.info("image_described", image_path="images/job-img_p0_1.png", chars=120)

Console output goes to stderr so that command output on stdout stays clean.
With ``enable_file`` a daily-rotated ``docindex.log`` is written as well.
"""

import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import structlog
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from docindex.config.schema import LoggingConfig

LOG_FILENAME = "docindex.log"


class TimedRotatingFileHandler(logging.handlers.TimedRotatingFileHandler):
    """Midnight-rotated file handler that also prunes rotated files by age.

    The stdlib handler only prunes by count (``backupCount``); rotated files
    older than ``max_days`` are removed here after each rollover.
    """

    def __init__(self, filename: str, max_days: int = 30, **kwargs):
        super().__init__(filename, when="midnight", interval=1, **kwargs)
        self.max_days = max_days

    def doRollover(self) -> None:
        super().doRollover()
        self.remove_expired()

    def remove_expired(self) -> list[str]:
        """Delete rotated siblings of the log file older than ``max_days``.

        Returns:
            Paths of the removed files
        """
        log_dir = os.path.dirname(self.baseFilename)
        prefix = os.path.basename(self.baseFilename) + "."
        cutoff = time.time() - self.max_days * 86400

        removed = []
        for name in os.listdir(log_dir):
            if not name.startswith(prefix):
                continue
            path = os.path.join(log_dir, name)
            try:
                if os.path.getmtime(path) < cutoff:
                    os.remove(path)
                    removed.append(path)
            except OSError:
                # Already rotated away by another process.
                continue
        return removed


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the application name."""
    event_dict["app"] = "docindex"
    return event_dict


def _build_processors(json_logs: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_app_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def _attach_rotating_file(log_dir: Path, numeric_level: int, max_days: int) -> Path:
    """Route the root logger to ``<log_dir>/docindex.log``, replacing older file handlers."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILENAME

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            root_logger.removeHandler(handler)
            handler.close()

    file_handler = TimedRotatingFileHandler(str(log_file), max_days=max_days, encoding="utf-8")
    file_handler.setLevel(numeric_level)
    root_logger.addHandler(file_handler)
    return log_file


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_dir: Optional[Path] = None,
    max_days: int = 30,
    enable_file: bool = False,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render events as JSON instead of the console format
        log_dir: Directory for ``docindex.log`` (file logging needs this and ``enable_file``)
        max_days: Number of days to keep rotated log files
        enable_file: Whether to write a log file
    """
    numeric_level = getattr(logging, level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)

    logger_factory: Any = structlog.PrintLoggerFactory(file=sys.stderr)
    if enable_file and log_dir:
        try:
            _attach_rotating_file(Path(log_dir), numeric_level, max_days)
            logger_factory = structlog.stdlib.LoggerFactory()
        except OSError as e:
            logging.warning("Failed to enable file logging: %s. Using console-only mode.", e)

    structlog.configure(
        processors=_build_processors(json_logs),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )


def configure_from_config(config: "LoggingConfig") -> None:
    """Configure logging from a LoggingConfig object."""
    configure_logging(
        level=config.level.value,
        json_logs=config.json_logs,
        log_dir=config.log_dir,
        max_days=config.max_days,
        enable_file=config.enable_file,
    )


def bind_command(command: str, **context: Any) -> None:
    """Attach the running CLI command (and extra context) to all following events."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(command=command, **context)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)
    """
    return structlog.get_logger(name)
