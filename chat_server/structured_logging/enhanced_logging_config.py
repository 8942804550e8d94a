"""
Enhanced structlog-based logging configuration for the chat relay server.

This module provides structured logging with MDC (Mapped Diagnostic Context)
for connection ids and usernames, security sanitization, and rotating log
files organized per environment.
"""

import json
import logging
import os
import sys
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    merge_contextvars,
)
from structlog.stdlib import BoundLogger, LoggerFactory

# Module-level logger for internal use
logger = structlog.get_logger(__name__)

VALID_ENVIRONMENTS = ["unit_test", "e2e_test", "local", "production"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_dir_lock = threading.Lock()

_LOGGING_INITIALIZED = False
_LOGGING_SIGNATURE: str | None = None

# Handlers installed by this module, so a reconfigure can remove exactly these
_installed_handlers: list[logging.Handler] = []


def _ensure_log_directory(log_path: Path) -> None:
    """
    Create the parent directory of a log file if it is missing.

    Failures are logged and swallowed: logging must not bring the server down
    because a directory could not be created.
    """
    if not log_path or not log_path.parent:
        return

    with _dir_lock:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(
                "Failed to create log directory",
                directory=str(log_path.parent),
                error=str(e),
                error_type=type(e).__name__,
            )


def _resolve_log_base(log_base: str) -> Path:
    """
    Resolve log_base path to absolute path relative to project root.

    Args:
        log_base: Relative or absolute path to log directory

    Returns:
        Absolute path to log directory
    """
    log_path = Path(log_base)

    if log_path.is_absolute():
        return log_path

    # Find the project root (where pyproject.toml is located)
    current_dir = Path.cwd()
    for parent in [current_dir] + list(current_dir.parents):
        if (parent / "pyproject.toml").exists():
            return parent / log_path

    return current_dir / log_path


def _rotate_log_files(env_log_dir: Path) -> None:
    """
    Rename log files left by a previous server run with a timestamp suffix.

    Each server start writes into fresh files, so one session's output never
    interleaves with another's.
    """
    if not env_log_dir.exists():
        return

    timestamp = datetime.now().strftime("%Y_%m_%d_%H%M%S")
    for log_file in env_log_dir.glob("*.log"):
        if not log_file.is_file() or log_file.stat().st_size == 0:
            continue
        rotated = log_file.with_name(f"{log_file.name}.{timestamp}")
        try:
            log_file.rename(rotated)
        except OSError as e:
            logger.warning("Could not rotate log file", log_file=str(log_file), error=str(e))


def detect_environment() -> str:
    """
    Detect the current environment based on various indicators.

    Returns:
        Environment name: "unit_test", "e2e_test", "local", or "production"
    """
    if "pytest" in sys.modules or "pytest" in sys.argv[0]:
        return "unit_test"

    env = os.getenv("CHAT_SERVER_ENV")
    if env and env in VALID_ENVIRONMENTS:
        return env

    logging_env = os.getenv("LOGGING_ENVIRONMENT", "")
    if logging_env in VALID_ENVIRONMENTS:
        return logging_env

    return "local"


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive data from log entries.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """
    sensitive_keys = [
        "password",
        "token",
        "secret",
        "credential",
        "auth",
        "api_key",
        "private_key",
        "authorization",
        "cookie",
    ]

    def sanitize_dict(d: dict[str, Any]) -> dict[str, Any]:
        """Recursively sanitize dictionary values."""
        sanitized: dict[str, Any] = {}
        for key, value in d.items():
            if isinstance(value, dict):
                sanitized[key] = sanitize_dict(value)
            elif isinstance(key, str) and any(sensitive in key.lower() for sensitive in sensitive_keys):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = value
        return sanitized

    return sanitize_dict(event_dict)


def configure_enhanced_structlog(
    environment: str | None = None,
    log_level: str = "INFO",
    log_config: dict[str, Any] | None = None,
) -> None:
    """
    Configure Structlog with MDC and security processors.

    Args:
        environment: Environment name (auto-detected if None)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_config: Logging configuration dictionary
    """
    if environment is None:
        environment = detect_environment()

    base_processors = [
        # Security first - sanitize sensitive data
        sanitize_sensitive_data,
        # Merge context variables (MDC): connection_id, username
        merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    _setup_enhanced_file_logging(environment, log_config or {}, log_level)

    structlog.configure(
        processors=base_processors + [structlog.processors.KeyValueRenderer(key_order=["event"])],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )


def _create_rotating_handler(log_path: Path, level: int, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    """Create a rotating file handler writing the plain stdlib format."""
    _ensure_log_directory(log_path)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    return handler


def _remove_installed_handlers() -> None:
    root_logger = logging.getLogger()
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()


def _setup_enhanced_file_logging(environment: str, log_config: dict[str, Any], log_level: str) -> None:
    """Set up console and rotating file handlers on the root logger."""
    _remove_installed_handlers()

    level = getattr(logging, str(log_level).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(console_handler)
    _installed_handlers.append(console_handler)

    if log_config.get("disable_logging", False):
        return

    env_log_dir = _resolve_log_base(log_config.get("log_base", "logs")) / environment
    _ensure_log_directory(env_log_dir / ".keep")
    _rotate_log_files(env_log_dir)

    max_bytes = int(log_config.get("max_bytes", 10 * 1024 * 1024))
    backup_count = int(log_config.get("backup_count", 5))

    server_handler = _create_rotating_handler(env_log_dir / "server.log", level, max_bytes, backup_count)
    # errors.log aggregates ERROR and CRITICAL from every subsystem
    errors_handler = _create_rotating_handler(env_log_dir / "errors.log", logging.ERROR, max_bytes, backup_count)

    for handler in (server_handler, errors_handler):
        root_logger.addHandler(handler)
        _installed_handlers.append(handler)


def setup_enhanced_logging(config: dict[str, Any], *, force_reconfigure: bool = False) -> None:
    """
    Set up logging from the server configuration dictionary.

    Args:
        config: Server configuration dictionary (see AppConfig.to_legacy_dict)
        force_reconfigure: When True, tear down existing handlers before reconfiguring
    """
    global _LOGGING_INITIALIZED  # pylint: disable=global-statement
    global _LOGGING_SIGNATURE  # pylint: disable=global-statement

    config_signature = json.dumps(config, sort_keys=True, default=str)

    if _LOGGING_INITIALIZED and not force_reconfigure:
        get_logger("chat_server.logging.setup").debug(
            "setup_enhanced_logging skipped; logging system already initialized",
            config_signature=_LOGGING_SIGNATURE,
        )
        return

    logging_config = config.get("logging", {})
    environment = logging_config.get("environment") or detect_environment()
    log_level = logging_config.get("level", "INFO")

    configure_enhanced_structlog(environment, log_level, logging_config)
    _configure_enhanced_uvicorn_logging()

    get_logger("chat_server.logging.enhanced").info(
        "Enhanced logging system initialized",
        environment=environment,
        log_level=log_level,
        log_base=logging_config.get("log_base", "logs"),
        file_logging=not logging_config.get("disable_logging", False),
    )

    _LOGGING_INITIALIZED = True
    _LOGGING_SIGNATURE = config_signature


def _configure_enhanced_uvicorn_logging() -> None:
    """Route uvicorn's loggers through the root handlers."""
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True


def bind_connection_context(connection_id: str, username: str | None = None, **kwargs: Any) -> None:
    """
    Bind the connection being served to the current logging context.

    Every log entry emitted while an event is handled then carries the
    connection id (and the username once it is known).
    """
    context_vars = {"connection_id": connection_id, "username": username, **kwargs}
    bind_contextvars(**{k: v for k, v in context_vars.items() if v is not None})


def clear_connection_context() -> None:
    """Clear the current connection context from logging."""
    clear_contextvars()


def get_current_context() -> dict[str, Any]:
    """Get the current logging context."""
    return structlog.contextvars.get_contextvars()


def get_logger(name: str) -> Any:  # Returns BoundLogger but typed as Any for flexibility
    """
    Get a Structlog logger with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured Structlog logger instance
    """
    return structlog.get_logger(name)


def log_exception_once(
    bound_logger: BoundLogger,
    level: str,
    message: str,
    *,
    exc: Exception | None = None,
    **kwargs: Any,
) -> None:
    """
    Log an exception once, skipping exceptions that have already been logged.

    Args:
        bound_logger: Structlog bound logger instance.
        level: Logging level to use (for example, "error" or "warning").
        message: Log message to emit.
        exc: Optional exception to include in the log entry.
        **kwargs: Additional key-value pairs for structured logging.
    """
    if exc is not None:
        if getattr(exc, "already_logged", False):
            return
        kwargs.setdefault("error_type", type(exc).__name__)
        kwargs.setdefault("error", str(exc))

    log_method = getattr(bound_logger, level.lower(), bound_logger.error)
    log_method(message, **kwargs)

    if exc is not None:
        exc.already_logged = True  # type: ignore[attr-defined]
