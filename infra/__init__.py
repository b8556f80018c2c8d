# Infrastructure module - Logging and configuration
# YAML config with environment overrides, Rich console + JSON file logs

from .logging import (
    get_logger, configure_logging, AccessScope,
    get_scope_id, generate_scope_id, get_log_file_path
)
from .config import (
    ConfigManager, Settings, StoreSettings, LoggingSettings,
    StoreKind, build_store, load_store
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "AccessScope",
    "get_scope_id",
    "generate_scope_id",
    "get_log_file_path",
    # Configuration
    "ConfigManager",
    "Settings",
    "StoreSettings",
    "LoggingSettings",
    "StoreKind",
    "build_store",
    "load_store",
]
