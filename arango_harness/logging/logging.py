"""
Structured Logging
==================

structlog configuration for harness runs.

Every record is rendered as one JSON line into ``harness.log`` (errors are
duplicated into ``errors.log``). Scenario context bound with
:func:`bind_scenario` is merged into every structlog record logged from the
same thread or task, so helper log lines carry the test that caused them.
"""

import logging
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path
import tempfile
import threading

import structlog

LOG_FILE = "harness.log"
ERROR_LOG_FILE = "errors.log"
FALLBACK_DIR_NAME = "arango_harness_logs"

_MAX_BYTES = 10_485_760


def _writable_dir(path: Path, parents: bool = False) -> Path | None:
    try:
        path.mkdir(parents=parents, exist_ok=True)
    except OSError:
        return None
    return path if os.access(path, os.W_OK) else None


def _get_log_directory(preferred: str | Path | None = None) -> Path:
    """
    Get a writable log directory.

    Priority:
    1. ``preferred`` argument
    2. LOG_DIR environment variable
    3. Current working directory / logs
    4. System temp directory / arango_harness_logs

    Returns:
        Path to writable log directory
    """
    candidates: list[tuple[Path, bool]] = []
    if preferred:
        candidates.append((Path(preferred), True))
    if env_log_dir := os.environ.get("LOG_DIR"):
        candidates.append((Path(env_log_dir), True))
    candidates.append((Path.cwd() / "logs", False))

    for path, parents in candidates:
        if found := _writable_dir(path, parents):
            return found

    fallback = Path(tempfile.gettempdir()) / FALLBACK_DIR_NAME
    fallback.mkdir(exist_ok=True)
    return fallback


def _validate_log_level(log_level: str) -> int:
    """
    Validate and convert log level string to numeric value.

    Args:
        log_level: Log level name (case-insensitive)

    Returns:
        Numeric logging level

    Raises:
        ValueError: If log_level is not a valid logging level name
    """
    level_name = str(log_level).upper()
    levels = logging.getLevelNamesMapping()
    levels.pop("NOTSET", None)

    if level_name not in levels:
        raise ValueError(
            f"Invalid log level: '{log_level}'. "
            f"Must be one of: {', '.join(sorted(levels))}"
        )

    return levels[level_name]


def _file_handler(path: Path, level: int, backups: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=_MAX_BYTES, backupCount=backups)
    handler.setLevel(level)
    return handler


def bind_scenario(**context) -> None:
    """Attach context (test id, database, ...) to every record logged from here on."""
    structlog.contextvars.bind_contextvars(**context)


def clear_scenario() -> None:
    structlog.contextvars.clear_contextvars()


# Global flag and lock for thread-safe initialization
_logging_initialized = False
_init_lock = threading.Lock()


class LogManager:
    """
    Process-wide structlog setup for the harness.

    Features:
    - JSON lines with ISO timestamps and call sites
    - Rotating harness and error logs
    - Scenario context merged from contextvars
    - Optional human-readable console output
    """

    @staticmethod
    def setup(log_level: str = "INFO", log_dir: str | Path | None = None, console: bool = False) -> Path | None:
        """
        Configure logging once per process.

        Args:
            log_level: Minimum level written to harness.log
            log_dir: Directory for the log files; see _get_log_directory
            console: Also render records to stderr

        Returns:
            The log directory, or None if logging was already configured
        """
        global _logging_initialized

        if _logging_initialized:
            return None

        with _init_lock:
            if _logging_initialized:
                return None

            numeric_level = _validate_log_level(log_level)
            directory = _get_log_directory(log_dir)

            root_logger = logging.getLogger()
            root_logger.setLevel(numeric_level)
            root_logger.addHandler(_file_handler(directory / LOG_FILE, numeric_level, backups=5))
            root_logger.addHandler(_file_handler(directory / ERROR_LOG_FILE, logging.ERROR, backups=3))
            if console:
                stream = logging.StreamHandler()
                stream.setLevel(numeric_level)
                root_logger.addHandler(stream)

            structlog.configure(
                processors=[
                    structlog.contextvars.merge_contextvars,
                    structlog.stdlib.filter_by_level,
                    structlog.stdlib.add_logger_name,
                    structlog.stdlib.add_log_level,
                    structlog.stdlib.PositionalArgumentsFormatter(),
                    structlog.processors.TimeStamper(fmt="iso"),
                    structlog.processors.StackInfoRenderer(),
                    structlog.processors.format_exc_info,
                    structlog.processors.UnicodeDecoder(),
                    structlog.processors.CallsiteParameterAdder(
                        parameters=[
                            structlog.processors.CallsiteParameter.FILENAME,
                            structlog.processors.CallsiteParameter.LINENO,
                        ]
                    ),
                    structlog.processors.dict_tracebacks,
                    structlog.processors.JSONRenderer(),
                ],
                context_class=dict,
                logger_factory=structlog.stdlib.LoggerFactory(),
                cache_logger_on_first_use=True,
            )

            _logging_initialized = True

            structlog.get_logger().info("logging_initialized", log_dir=str(directory), level=log_level)
            return directory

    @staticmethod
    def get_logger(component: str, run_id: str):
        """
        Get a logger bound to a component and run.

        Args:
            component: Test node id or module name
            run_id: Identifier shared by every test in one session

        Returns:
            Bound structlog logger
        """
        if not _logging_initialized:
            LogManager.setup()

        return structlog.get_logger().bind(component=component, run_id=run_id)
