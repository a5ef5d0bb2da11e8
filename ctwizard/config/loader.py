"""YAML loader for container build defaults."""
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from ctwizard.models.defaults import ContainerDefaults


class ConfigValidationError(Exception):
    """Raised when a defaults file or manifest is invalid."""
    pass


def load_defaults(path: Union[str, Path]) -> ContainerDefaults:
    """Load and validate a defaults file.

    The file may hold the settings at top level or under a 'container' key.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Defaults file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if not raw:
        raise ConfigValidationError(f"Defaults file is empty: {config_path}")
    if not isinstance(raw, dict):
        raise ConfigValidationError(f"Defaults file must be a mapping: {config_path}")

    data: Dict[str, Any] = raw.get("container", raw)

    try:
        return ContainerDefaults(**data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigValidationError(f"Invalid defaults in {config_path}: {problems}") from e
