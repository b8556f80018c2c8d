"""
Configuration Manager
---------------------
Loads store and logging settings from YAML with environment overrides.

Example strongbox.yaml:
    store:
      kind: public
      default_policy: read-only
      permissions:
        token: none
        theme: rw
    logging:
      level: DEBUG
      file: true
      directory: logs

Environment variables override scalar settings:
    STRONGBOX_STORE_DEFAULT_POLICY=rw
    STRONGBOX_LOGGING_LEVEL=WARNING
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union
import logging
import os

import yaml
from pydantic import BaseModel, Field, field_validator

from memory.store import LockedStore, PublicStore, Store
from security.permissions import Policy, check_field_name
from infra.logging import configure_logging


DEFAULT_CONFIG_PATH = "strongbox.yaml"


class StoreKind(str, Enum):
    """Store flavours selectable from configuration."""
    STORE = "store"
    PUBLIC = "public"
    LOCKED = "locked"


STORE_CLASSES: Dict[StoreKind, Type[Store]] = {
    StoreKind.STORE: Store,
    StoreKind.PUBLIC: PublicStore,
    StoreKind.LOCKED: LockedStore,
}


class StoreSettings(BaseModel):
    """Settings for the root store."""
    kind: StoreKind = StoreKind.STORE
    default_policy: Policy = Policy.READ_WRITE
    permissions: Dict[str, Policy] = Field(default_factory=dict)

    @field_validator("default_policy", mode="before")
    @classmethod
    def _parse_policy(cls, value: Any) -> Policy:
        return Policy.parse(value)

    @field_validator("permissions", mode="before")
    @classmethod
    def _parse_permissions(cls, value: Any) -> Dict[str, Policy]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("permissions must be a mapping of field name to policy")
        return {
            check_field_name(str(name)): Policy.parse(policy)
            for name, policy in value.items()
        }


class LoggingSettings(BaseModel):
    """Settings passed to configure_logging()."""
    level: Union[int, str] = "INFO"
    console: bool = True
    file: bool = False
    directory: Optional[str] = None

    @field_validator("level", mode="before")
    @classmethod
    def _check_level(cls, value: Any) -> Union[int, str]:
        # YAML `level: 10` and STRONGBOX_LOGGING_LEVEL=10 both mean DEBUG
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value)
        if isinstance(value, int) and not isinstance(value, bool):
            if value < 0:
                raise ValueError(f"Unknown log level: {value}")
            return value
        if isinstance(value, str) and isinstance(logging.getLevelName(value.upper()), int):
            return value.upper()
        raise ValueError(f"Unknown log level: {value!r}")


class Settings(BaseModel):
    """Complete Strongbox configuration."""
    store: StoreSettings = Field(default_factory=StoreSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class ConfigManager:
    """
    Centralized configuration management.
    Loads configuration from YAML with environment variable overrides.
    """

    ENV_PREFIX = "STRONGBOX"

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self._config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._logger = logging.getLogger("strongbox.infra.config")

        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file."""
        if self._config_path.exists():
            with open(self._config_path, "r") as f:
                self._config = yaml.safe_load(f) or {}
            self._logger.info(
                f"Loaded config from {self._config_path}",
                extra={"config_path": str(self._config_path)},
            )
        else:
            self._config = {}
            self._logger.warning(f"Config file not found: {self._config_path}")

    def env_key(self, key: str) -> str:
        return f"{self.ENV_PREFIX}_{key.upper().replace('.', '_')}"

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.
        Supports dot notation: 'section.key'
        Environment variables override file config.
        """
        env_value = os.getenv(self.env_key(key))
        if env_value is not None:
            return env_value

        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value (runtime only, not persisted)."""
        parts = key.split(".")
        config = self._config

        for part in parts[:-1]:
            if not isinstance(config.get(part), dict):
                config[part] = {}
            config = config[part]

        config[parts[-1]] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get an entire configuration section."""
        value = self._config.get(section, {})
        return value if isinstance(value, dict) else {}

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def settings(self) -> Settings:
        """
        Validated settings, file values overlaid with environment values.

        Raises:
            pydantic.ValidationError: If a value is invalid
        """
        data: Dict[str, Dict[str, Any]] = {}

        for section, model in (("store", StoreSettings), ("logging", LoggingSettings)):
            values = dict(self.get_section(section))
            for name in model.model_fields:
                if name == "permissions":
                    continue
                env_value = os.getenv(self.env_key(f"{section}.{name}"))
                if env_value is not None:
                    values[name] = env_value
            data[section] = values

        return Settings.model_validate(data)


def build_store(
    settings: Optional[StoreSettings] = None,
    store_class: Optional[Type[Store]] = None,
) -> Store:
    """Create a store with the configured default policy and overrides."""
    settings = settings or StoreSettings()
    cls = store_class or STORE_CLASSES[settings.kind]

    store = cls(default_policy=settings.default_policy)
    for name, policy in settings.permissions.items():
        store.set_policy(name, policy)

    return store


def load_store(
    config_path: str = DEFAULT_CONFIG_PATH,
    store_class: Optional[Type[Store]] = None,
    configure: bool = True,
) -> Store:
    """
    Load configuration, set up logging, and build the root store.

    Args:
        config_path: YAML file to read (missing file means defaults)
        store_class: Overrides the configured store kind
        configure: Apply the logging section via configure_logging()
    """
    settings = ConfigManager(config_path).settings()

    if configure:
        configure_logging(
            level=settings.logging.level,
            log_dir=settings.logging.directory,
            console=settings.logging.console,
            file=settings.logging.file,
        )

    return build_store(settings.store, store_class)
