"""Configuration loading.

The configuration document is looked up in this order, walking from the
start directory towards the filesystem root:

1. ``.semver.json``
2. ``pyproject.toml`` containing a ``[tool.flexvers]`` table
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from flexvers.config.models import FlexversConfig
from flexvers.exceptions import ConfigNotFoundError, ConfigValidationError

CONFIG_FILENAME = ".semver.json"
PYPROJECT_FILENAME = "pyproject.toml"
TOOL_TABLE = "flexvers"


def find_pyproject_toml(start_path: Path | None = None) -> Path:
    """Find pyproject.toml by walking up from the start path.

    Raises:
        ConfigNotFoundError: If no pyproject.toml is found
    """
    current = (start_path or Path.cwd()).resolve()

    for directory in [current, *current.parents]:
        candidate = directory / PYPROJECT_FILENAME
        if candidate.is_file():
            return candidate

    raise ConfigNotFoundError(f"Could not find {PYPROJECT_FILENAME} in {current} or any parent")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Load and parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file doesn't exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"File not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_flexvers_config(pyproject: dict[str, Any]) -> dict[str, Any] | None:
    """Return the ``[tool.flexvers]`` table, or None when absent."""
    section = pyproject.get("tool", {}).get(TOOL_TABLE)
    return section if isinstance(section, dict) else None


def find_config_file(start_path: Path | None = None) -> Path:
    """Locate the configuration document.

    Raises:
        ConfigNotFoundError: If neither ``.semver.json`` nor a pyproject.toml
            with ``[tool.flexvers]`` exists
    """
    current = (start_path or Path.cwd()).resolve()

    for directory in [current, *current.parents]:
        json_path = directory / CONFIG_FILENAME
        if json_path.is_file():
            return json_path

        pyproject_path = directory / PYPROJECT_FILENAME
        if pyproject_path.is_file():
            if extract_flexvers_config(load_pyproject_toml(pyproject_path)) is not None:
                return pyproject_path

    raise ConfigNotFoundError(
        f"No {CONFIG_FILENAME} or [tool.{TOOL_TABLE}] in {PYPROJECT_FILENAME} "
        f"found in {current} or any parent"
    )


def load_config_document(path: Path) -> dict[str, Any]:
    """Read the raw configuration mapping from a JSON or TOML file.

    Raises:
        ConfigNotFoundError: If the file doesn't exist or has no flexvers table
        ConfigValidationError: If the file cannot be parsed
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")

    if path.suffix == ".toml":
        section = extract_flexvers_config(load_pyproject_toml(path))
        if section is None:
            raise ConfigNotFoundError(f"No [tool.{TOOL_TABLE}] table in {path}")
        return section

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigValidationError(f"Configuration in {path} must be a JSON object")
    return data


def parse_config(data: dict[str, Any], source: str = "<config>") -> FlexversConfig:
    """Validate a raw mapping against the document schema.

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        return FlexversConfig.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigValidationError(f"Invalid configuration in {source}: {errors}") from e


def load_config(path: Path | None = None, config_file: Path | None = None) -> FlexversConfig:
    """Load and validate the configuration document.

    Args:
        path: Project directory to search from (defaults to cwd)
        config_file: Explicit document path, skips the search

    Raises:
        ConfigNotFoundError: If no document is found
        ConfigValidationError: If the document is invalid
    """
    document_path = config_file if config_file is not None else find_config_file(path)
    return parse_config(load_config_document(document_path), source=str(document_path))
