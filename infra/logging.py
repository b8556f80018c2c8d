"""
Strongbox Centralized Logging
-----------------------------
Structured logging with scope_id propagation for access traceability.

Design:
- A caller may open an access scope around a batch of store operations
- scope_id is attached to every record emitted inside the scope
- Supports console (Rich) and file (JSON lines) output
- Severity discipline: DEBUG=access, WARNING=denied, ERROR=config failure

Usage:
    from infra.logging import get_logger, AccessScope

    logger = get_logger("app")

    with AccessScope() as scope_id:
        store.write("session:user", "ada")   # store logs carry scope_id
"""

import contextvars
import json
import logging
import logging.handlers
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler


ROOT_LOGGER = "strongbox"

_scope_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "scope_id", default=None
)


def generate_scope_id() -> str:
    """Generate a unique scope ID."""
    return f"scope_{uuid.uuid4().hex[:12]}"


def get_scope_id() -> Optional[str]:
    """Get the current scope ID from context."""
    return _scope_id_var.get()


class AccessScope:
    """
    Context manager tagging log records with a scope ID.

    Usage:
        with AccessScope() as scope_id:
            store.read("config:theme")
    """

    def __init__(self, scope_id: Optional[str] = None):
        self._scope_id = scope_id or generate_scope_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _scope_id_var.set(self._scope_id)
        return self._scope_id

    def __exit__(self, *args) -> None:
        if self._token is not None:
            _scope_id_var.reset(self._token)
            self._token = None


class ScopeIdFilter(logging.Filter):
    """Logging filter that adds scope_id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "scope_id", None) is None:
            record.scope_id = get_scope_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured file logging."""

    EXTRA_FIELDS = ("path", "operation", "policy", "config_path")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "scope_id": getattr(record, "scope_id", "-"),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in self.EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


class ScopedRichHandler(RichHandler):
    """Rich console handler that prefixes messages with the scope ID."""

    def __init__(self, console: Optional[Console] = None, **kwargs):
        kwargs.setdefault("show_path", False)
        kwargs.setdefault("rich_tracebacks", True)
        super().__init__(console=console or Console(stderr=True), **kwargs)

    def render_message(self, record: logging.LogRecord, message: str):
        scope_id = getattr(record, "scope_id", "-")
        if scope_id != "-":
            message = f"[{scope_id}] {message}"
        return super().render_message(record, message)


# Global configuration state
_logging_initialized = False
_log_file_path: Optional[Path] = None

MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 3


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[str] = None,
    console: bool = True,
    file: bool = False,
    force: bool = False,
) -> None:
    """
    Configure the Strongbox logging system.

    Args:
        level: Logging level (default INFO)
        log_dir: Directory for log files (default: ./logs)
        console: Enable console output
        file: Enable JSON file output
        force: Reconfigure even if already configured
    """
    global _logging_initialized, _log_file_path

    if _logging_initialized and not force:
        return

    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    scope_filter = ScopeIdFilter()

    if console:
        console_handler = ScopedRichHandler()
        console_handler.setLevel(level)
        console_handler.addFilter(scope_filter)
        root_logger.addHandler(console_handler)

    _log_file_path = None
    if file:
        log_path = Path(log_dir) if log_dir else Path("logs")
        log_path.mkdir(parents=True, exist_ok=True)

        _log_file_path = log_path / "strongbox.log"

        file_handler = logging.handlers.RotatingFileHandler(
            str(_log_file_path),
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)  # File gets everything
        file_handler.setFormatter(JSONFormatter())
        file_handler.addFilter(scope_filter)
        root_logger.addHandler(file_handler)

    _logging_initialized = True


def get_log_file_path() -> Optional[Path]:
    """Path of the active JSON log file, if file output is enabled."""
    return _log_file_path


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the Strongbox namespace.

    Args:
        name: Logger name (prefixed with 'strongbox.' if not already)
    """
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
