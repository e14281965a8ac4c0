#  Copyright (c) 2025 Tom Villani, Ph.D.

"""Configuration file discovery and loading for the mdbridge CLI.

This module handles automatic discovery of configuration files, loading
configs from TOML, YAML or JSON, merging configurations, and mapping the
``parser``, ``renderer`` and ``resolver`` sections onto option objects.
"""

import argparse
import json
import sys
from dataclasses import fields
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]
from typing import Any, Dict, Optional

import yaml

from mdbridge.exceptions import ValidationError
from mdbridge.options import MarkdownParserOptions, MarkdownRendererOptions, ResolverContext

CONFIG_ENV_VAR = "MDBRIDGE_CONFIG"
DEDICATED_CONFIG_FILENAMES = [".mdbridge.toml", ".mdbridge.yaml", ".mdbridge.yml", ".mdbridge.json"]

# Config section -> options class
CONFIG_SECTIONS: Dict[str, type] = {
    "parser": MarkdownParserOptions,
    "renderer": MarkdownRendererOptions,
    "resolver": ResolverContext,
}


def _load_pyproject_mdbridge_section(pyproject_path: Path) -> Dict[str, Any]:
    """Load [tool.mdbridge] section from pyproject.toml file.

    Parameters
    ----------
    pyproject_path : Path
        Path to pyproject.toml file

    Returns
    -------
    dict
        Configuration dictionary from [tool.mdbridge] section, or empty dict if not found

    Raises
    ------
    argparse.ArgumentTypeError
        If pyproject.toml cannot be parsed

    """
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)

        if "tool" in data and "mdbridge" in data["tool"]:
            config = data["tool"]["mdbridge"]
            if not isinstance(config, dict):
                raise argparse.ArgumentTypeError(
                    f"[tool.mdbridge] section in {pyproject_path} must be a table, got {type(config).__name__}"
                )
            return config

        return {}

    except argparse.ArgumentTypeError:
        raise
    except tomllib.TOMLDecodeError as e:
        raise argparse.ArgumentTypeError(f"Invalid TOML in pyproject.toml {pyproject_path}: {e}") from e
    except Exception as e:
        raise argparse.ArgumentTypeError(f"Error reading pyproject.toml {pyproject_path}: {e}") from e


def find_config_in_parents(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find configuration file by searching parent directories.

    Walks up the directory tree from start_dir to the filesystem root,
    checking each directory for configuration files in priority order:
    1. .mdbridge.toml
    2. .mdbridge.yaml / .mdbridge.yml
    3. .mdbridge.json
    4. pyproject.toml (with [tool.mdbridge] section)

    Parameters
    ----------
    start_dir : Path, optional
        Starting directory for search, defaults to current working directory

    Returns
    -------
    Path or None
        Path to first config file found, or None if not found

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        for filename in DEDICATED_CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.exists() and config_path.is_file():
                return config_path

        pyproject_path = current / "pyproject.toml"
        if pyproject_path.exists() and pyproject_path.is_file():
            try:
                # Only return pyproject.toml if it has [tool.mdbridge] section
                if _load_pyproject_mdbridge_section(pyproject_path):
                    return pyproject_path
            except argparse.ArgumentTypeError:
                # Invalid pyproject.toml, skip it and continue searching
                pass

        parent = current.parent
        if parent == current:
            break

        current = parent

    return None


def load_config_file(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from JSON, TOML, YAML, or pyproject.toml file.

    Parameters
    ----------
    config_path : Path or str
        Path to the configuration file

    Returns
    -------
    dict
        Configuration dictionary loaded from file

    Raises
    ------
    argparse.ArgumentTypeError
        If the file cannot be read, parsed, or has invalid format

    Examples
    --------
    >>> config = load_config_file(".mdbridge.toml")
    >>> print(config.get("renderer", {}).get("bullet_marker"))
    *

    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise argparse.ArgumentTypeError(f"Configuration file does not exist: {config_path}")

    if not config_path.is_file():
        raise argparse.ArgumentTypeError(f"Configuration path is not a file: {config_path}")

    filename = config_path.name.lower()
    ext = config_path.suffix.lower()

    try:
        if filename == "pyproject.toml":
            return _load_pyproject_mdbridge_section(config_path)
        elif ext == ".toml":
            return _load_toml_config(config_path)
        elif ext in (".yaml", ".yml"):
            return _load_yaml_config(config_path)
        elif ext == ".json":
            return _load_json_config(config_path)
        else:
            raise argparse.ArgumentTypeError(f"Unsupported config file format: {ext}. Use .json, .toml, or .yaml")
    except argparse.ArgumentTypeError:
        raise
    except Exception as e:
        raise argparse.ArgumentTypeError(f"Error reading config file {config_path}: {e}") from e


def _load_toml_config(config_path: Path) -> Dict[str, Any]:
    """Load configuration from TOML file."""
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise argparse.ArgumentTypeError(f"Invalid TOML in config file {config_path}: {e}") from e


def _load_json_config(config_path: Path) -> Dict[str, Any]:
    """Load configuration from JSON file.

    Raises
    ------
    argparse.ArgumentTypeError
        If JSON file cannot be parsed or is not an object

    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"Invalid JSON in config file {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise argparse.ArgumentTypeError(f"JSON config file must contain an object, got {type(config).__name__}")
    return config


def _load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """Load configuration from YAML file.

    An empty file is an empty configuration.

    Raises
    ------
    argparse.ArgumentTypeError
        If YAML file cannot be parsed or is not a mapping

    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise argparse.ArgumentTypeError(f"Invalid YAML in config file {config_path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise argparse.ArgumentTypeError(f"YAML config file must contain a mapping, got {type(config).__name__}")
    return config


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries with deep merging.

    The override dictionary takes precedence over base for conflicting keys.
    Nested dictionaries are merged recursively, not replaced entirely.

    Examples
    --------
    >>> base = {'parser': {'strip_html': False}, 'renderer': {'bullet_marker': '*'}}
    >>> override = {'parser': {'parse_tables': False}}
    >>> merge_configs(base, override)
    {'parser': {'strip_html': False, 'parse_tables': False}, 'renderer': {'bullet_marker': '*'}}

    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def load_config_with_priority(
    explicit_path: Optional[str] = None,
    env_var_path: Optional[str] = None,
    discover: bool = True,
) -> Dict[str, Any]:
    """Load configuration with proper priority handling.

    Priority order (highest to lowest):
    1. Explicit config file path (--config flag)
    2. Environment variable config path (MDBRIDGE_CONFIG)
    3. Auto-discovered config file, unless ``discover`` is False

    Parameters
    ----------
    explicit_path : str, optional
        Explicit config file path from --config flag
    env_var_path : str, optional
        Config file path from MDBRIDGE_CONFIG environment variable
    discover : bool, default True
        Whether to search for a config file when no path is given

    Returns
    -------
    dict
        Loaded configuration dictionary (empty dict if no config found)

    Raises
    ------
    argparse.ArgumentTypeError
        If a config file is specified but cannot be loaded

    """
    if explicit_path:
        return load_config_file(explicit_path)

    if env_var_path:
        return load_config_file(env_var_path)

    if discover:
        discovered_path = find_config_in_parents()
        if discovered_path:
            return load_config_file(discovered_path)

    return {}


def build_options(
    config: Dict[str, Any],
) -> tuple[MarkdownParserOptions, MarkdownRendererOptions, ResolverContext]:
    """Turn a configuration mapping into option objects.

    Parameters
    ----------
    config : dict
        Mapping with optional ``parser``, ``renderer`` and ``resolver``
        sections

    Returns
    -------
    tuple
        (parser options, renderer options, resolver context)

    Raises
    ------
    ValidationError
        If a section or key is unknown, or a value is invalid

    Examples
    --------
    >>> parser, renderer, resolver = build_options({"renderer": {"bullet_marker": "*"}})
    >>> renderer.bullet_marker
    '*'

    """
    unknown_sections = sorted(set(config) - set(CONFIG_SECTIONS))
    if unknown_sections:
        raise ValidationError(
            f"Unknown configuration section(s): {', '.join(unknown_sections)}",
            parameter_name="config",
            parameter_value=unknown_sections,
        )

    built: Dict[str, Any] = {}
    for section, options_class in CONFIG_SECTIONS.items():
        values = config.get(section) or {}
        if not isinstance(values, dict):
            raise ValidationError(
                f"Configuration section '{section}' must be a table, got {type(values).__name__}",
                parameter_name=section,
                parameter_value=values,
            )

        known = {field.name for field in fields(options_class)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValidationError(
                f"Unknown {section} option(s): {', '.join(unknown)}",
                parameter_name=section,
                parameter_value=unknown,
            )

        try:
            built[section] = options_class(**values)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Invalid {section} configuration: {e}",
                parameter_name=section,
                parameter_value=values,
                original_error=e,
            ) from e

    return built["parser"], built["renderer"], built["resolver"]
