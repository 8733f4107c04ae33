"""Configuration loading for photolens.

A YAML file is layered over ``DEFAULT_CONFIG``, then a few fields may be
replaced from the environment (see ``ENV_OVERRIDES``). Values are read
with dotted keys such as ``vision.model``.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import yaml

from photolens.config.defaults import (
    DEFAULT_CONFIG,
    ENV_OVERRIDES,
    FIELD_DESCRIPTIONS,
    REQUIRED_FIELDS,
)

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".photolens"
CONFIG_FILE_NAME = "config.yaml"


class ConfigError(Exception):
    """Raised when configuration cannot be read, written or validated."""
    pass


def default_config_path() -> Path:
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``base`` with ``updates`` merged in, section by section."""
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_path(config: Dict[str, Any], dotted_key: str) -> Any:
    node: Any = config
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def set_path(config: Dict[str, Any], dotted_key: str, value: Any) -> None:
    *parents, leaf = dotted_key.split(".")
    node = config
    for part in parents:
        if not isinstance(node.get(part), dict):
            node[part] = {}
        node = node[part]
    node[leaf] = value


def find_config_file(candidates: Optional[Iterable[Path]] = None) -> Optional[Path]:
    """Return the first existing config file.

    Looks in ``~/.photolens/config.yaml`` and then ``./config.yaml`` unless
    other candidates are given.
    """
    if candidates is None:
        candidates = (default_config_path(), Path.cwd() / CONFIG_FILE_NAME)
    for candidate in candidates:
        if candidate.exists():
            logger.debug(f"Found config file: {candidate}")
            return candidate
    logger.debug("No config file in the standard locations")
    return None


def read_config_file(path: Path) -> Dict[str, Any]:
    """Parse a YAML config file; an empty file yields an empty dict.

    Raises:
        ConfigError: If the file is unreadable, not YAML, or not a mapping
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"{path} is not valid YAML: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"{path} must contain a mapping of sections, got {type(data).__name__}"
        )
    return data


def write_config_file(config: Dict[str, Any], path: Path) -> None:
    """Write ``config`` as YAML, creating parent directories.

    Raises:
        ConfigError: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigError(f"Cannot write configuration to {path}: {e}") from e


class ConfigManager:
    """Holds the effective photolens configuration.

    Attributes:
        config: Nested configuration dictionary
        config_path: File the configuration was read from or saved to

    Examples:
        >>> config = ConfigManager.load("config.yaml", interactive=False)
        >>> config.get("vision.model")
        'qwen3-vl:8b'
    """

    def __init__(self, config: Dict[str, Any], config_path: Optional[Path] = None):
        self.config = config
        self.config_path = config_path

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        interactive: bool = True,
        create_if_missing: bool = True,
        validate: bool = True
    ) -> "ConfigManager":
        """Build the effective configuration.

        Args:
            config_path: Explicit config file; searched for when omitted
            interactive: Ask on stdin for required values that are missing
            create_if_missing: Start from defaults and write a new file when
                none exists
            validate: Fail when required values are still missing

        Returns:
            ConfigManager with file values, prompted values and environment
            overrides applied

        Raises:
            ConfigError: If the file is missing (and may not be created),
                unreadable, or required values are missing
        """
        path = Path(config_path).expanduser() if config_path else find_config_file()
        dirty = False

        if path is not None and path.exists():
            logger.info(f"Loading configuration from: {path}")
            manager = cls(deep_merge(DEFAULT_CONFIG, read_config_file(path)), path)
        elif create_if_missing:
            path = path or default_config_path()
            logger.info(f"No configuration at {path}, starting from defaults")
            manager = cls(copy.deepcopy(DEFAULT_CONFIG), path)
            dirty = True
        else:
            raise ConfigError(f"Configuration file not found: {path or CONFIG_FILE_NAME}")

        if interactive and manager.prompt_for_missing():
            dirty = True
        if dirty:
            manager.save()

        # Applied after saving so secrets from the environment stay off disk
        manager.apply_environment()

        if validate:
            manager.validate()
        return manager

    def missing_fields(self) -> List[str]:
        """Required dotted keys that have no value."""
        return [key for key in REQUIRED_FIELDS if not get_path(self.config, key)]

    def apply_environment(self, environ: Optional[Dict[str, str]] = None) -> None:
        """Replace fields listed in ``ENV_OVERRIDES`` from the environment."""
        environ = os.environ if environ is None else environ
        for key, variable in ENV_OVERRIDES.items():
            if environ.get(variable):
                logger.debug(f"{key} taken from ${variable}")
                set_path(self.config, key, environ[variable])

    def prompt_for_missing(self, ask: Optional[Callable[[str], str]] = None) -> bool:
        """Ask for required values not covered by the environment.

        Args:
            ask: Prompt function (default: ``input``)

        Returns:
            True if any value was entered
        """
        ask = ask or input
        pending = [
            key for key in self.missing_fields()
            if not os.environ.get(ENV_OVERRIDES.get(key, ""))
        ]
        if not pending:
            return False

        print("\n" + "=" * 70)
        print("photolens setup: a few required values are missing")
        print("=" * 70)
        for key in pending:
            print(f"\n{FIELD_DESCRIPTIONS.get(key, key)}")
            value = ""
            while not value:
                value = ask(f"{key}: ").strip()
                if not value:
                    print("  A value is required.")
            set_path(self.config, key, value)
        print()
        return True

    def validate(self) -> None:
        """Check that every required field has a value.

        Raises:
            ConfigError: Listing the missing fields and their environment
                variables
        """
        missing = self.missing_fields()
        if not missing:
            return
        hints = []
        for key in missing:
            variable = ENV_OVERRIDES.get(key)
            hints.append(f"  - {key}" + (f" (or ${variable})" if variable else ""))
        raise ConfigError(
            "Missing required configuration fields:\n" + "\n".join(hints)
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key, e.g. ``config.get("privacy.clean_prefix")``."""
        value = get_path(self.config, key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """Assign a dotted key, creating sections as needed."""
        set_path(self.config, key, value)

    def save(self, path: Optional[str] = None) -> None:
        """Write the configuration to ``path`` or to ``config_path``.

        Raises:
            ConfigError: If neither is known or the file cannot be written
        """
        target = Path(path).expanduser() if path else self.config_path
        if target is None:
            raise ConfigError("No configuration path to save to")
        write_config_file(self.config, target)
        logger.info(f"Configuration saved to: {target}")

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.config)

    def __repr__(self) -> str:
        source = f" from {self.config_path}" if self.config_path else ""
        return f"<ConfigManager{source}>"
