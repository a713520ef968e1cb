"""
Configuration loading for loom applications.

Sources, later ones winning:
1. ``.env`` in the working directory (never overrides the real environment)
2. ``$CONFIG_DIR/application.yaml``
3. ``$CONFIG_DIR/application-{STAGE}.yaml`` (deep merged, optional)

String values may reference the environment as ``${NAME}`` or
``${NAME:fallback}``. A reference without fallback to an unset variable is
an error.
"""
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

import yaml
from dotenv import load_dotenv

from loom.config.application_config import LoomConfig

C = TypeVar("C", bound=LoomConfig)

logger = logging.getLogger(__name__)

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<fallback>[^}]*))?\}")
_YAML_SUFFIXES = (".yaml", ".yml")


def merge_overrides(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Return base with overrides applied recursively; nested mappings merge, anything else replaces."""
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_overrides(current, value)
        else:
            merged[key] = value
    return merged


def expand_environment(value: Any) -> Any:
    """Resolve ``${NAME:fallback}`` references in every string of a YAML tree."""
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(_lookup, value)
    if isinstance(value, Mapping):
        return {key: expand_environment(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_environment(item) for item in value]
    return value


def _lookup(match: "re.Match[str]") -> str:
    name = match.group("name")
    if name in os.environ:
        return os.environ[name]
    fallback = match.group("fallback")
    if fallback is None:
        raise ValueError(f"Environment variable '{name}' is referenced in configuration but not set")
    return fallback


class ServiceConfigLoader:
    """Builds a validated LoomConfig (or subclass) from a configuration directory."""

    @staticmethod
    def load_config(config_class: Type[C] = LoomConfig, config_dir: Optional[str] = None) -> C:
        """
        Load, merge and validate configuration.

        Args:
            config_class: Pydantic model to validate against
            config_dir: Directory holding application.yaml, defaults to $CONFIG_DIR

        Returns:
            Validated configuration instance

        Raises:
            ValueError: If no directory is known, or an environment reference
                cannot be resolved
            FileNotFoundError: If the directory or application.yaml is missing
            pydantic.ValidationError: If the merged document is invalid
        """
        ServiceConfigLoader._read_env_file()

        directory = config_dir or os.environ.get("CONFIG_DIR")
        if not directory:
            raise ValueError("No configuration directory given and CONFIG_DIR is not set")
        root = Path(directory)
        if not root.is_dir():
            raise FileNotFoundError(f"Configuration directory {root} does not exist")

        stage = os.environ.get("STAGE", "local")
        base = ServiceConfigLoader._locate(root, "application")
        if base is None:
            raise FileNotFoundError(f"No application.yaml or application.yml in {root}")

        document = ServiceConfigLoader._read(base)
        override = ServiceConfigLoader._locate(root, f"application-{stage}")
        if override is not None:
            logger.debug(f"Merging stage overrides from {override.name}")
            document = merge_overrides(document, ServiceConfigLoader._read(override))

        document.setdefault("stage", stage)
        config = config_class.model_validate(expand_environment(document))
        logger.info(f"Loaded {config_class.__name__} for '{config.app_name}' (stage={stage}) from {root}")
        return config

    @staticmethod
    def _locate(root: Path, stem: str) -> Optional[Path]:
        for suffix in _YAML_SUFFIXES:
            candidate = root / f"{stem}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        with path.open() as stream:
            return yaml.safe_load(stream) or {}

    @staticmethod
    def _read_env_file() -> None:
        if Path(".env").is_file():
            load_dotenv(".env", override=False)
