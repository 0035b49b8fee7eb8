"""YAML file loading helpers."""

from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from src.config.logging_config import get_logger
from src.domain.exceptions import ConfigurationError

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def load_yaml_mapping(path: str | Path) -> dict[str, Any]:
    """Read a YAML file whose top level is a mapping.

    Args:
        path: File path

    Returns:
        Parsed mapping (empty for an empty file)

    Raises:
        ConfigurationError: If the file is unreadable, malformed or not a mapping
    """
    try:
        with open(path, encoding="utf-8") as f:
            payload = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigurationError(f"Failed to load {path}: {e}") from e

    if not isinstance(payload, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")

    logger.debug("config_file_loaded", path=str(path))
    return payload


def load_yaml_model(model: type[ModelT], path: str | Path) -> ModelT:
    """Load a YAML file and validate it into a pydantic model.

    Raises:
        ConfigurationError: If the file cannot be loaded or fails validation
    """
    try:
        return model.model_validate(load_yaml_mapping(path))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {path}: {e}") from e
