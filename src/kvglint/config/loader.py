"""
kvglint.config.loader - Configuration file discovery and loading.

Configuration lives in a ``.kvglint.toml`` file, found by walking up
from the working directory. Values are layered: built-in defaults, then
the file, then ``KVGLINT_*`` environment variables.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomlkit
from tomlkit import TOMLDocument

from kvglint.config.defaults import CONFIG_FILE_NAME, DEFAULT_CONFIG

ENV_PREFIX = "KVGLINT_"


def parse_toml(content: str) -> Dict[str, Any]:
    """Parse TOML text into plain Python values.

    Raises:
        tomlkit.exceptions.ParseError: If the text is not valid TOML
    """
    return parse_toml_document(content).unwrap()


def parse_toml_document(content: str) -> TOMLDocument:
    """Parse TOML text into a style-preserving tomlkit document."""
    return tomlkit.parse(content)


def find_config_file(start: Path) -> Optional[Path]:
    """
    Find the configuration file in ``start`` or any parent directory.

    Args:
        start: Directory to start searching from

    Returns:
        Path to the configuration file, or None
    """
    current = start.resolve()
    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables are merged key by key; any other value in ``override``
    replaces the base value.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _try_parse_env_value(value: str) -> Any:
    """Convert an environment variable string to a typed value.

    JSON arrays and objects, booleans and numbers are converted; anything
    else (including malformed JSON) is returned as the original string.
    """
    stripped = value.strip()
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    lowered = stripped.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for convert in (int, float):
        try:
            return convert(stripped)
        except ValueError:
            pass
    return value


def _resolve_env_path(node: Dict[str, Any], parts: List[str]) -> List[str]:
    """Map underscore-separated parts onto nested keys of ``node``.

    Keys may themselves contain underscores (``max_number_distance``), so
    the longest existing key wins at each level. Unknown trailing parts
    become a single new key.
    """
    for size in range(len(parts), 0, -1):
        key = "_".join(parts[:size])
        if key not in node:
            continue
        if size == len(parts):
            return [key]
        if isinstance(node[key], dict):
            rest = _resolve_env_path(node[key], parts[size:])
            if rest:
                return [key] + rest
    return ["_".join(parts)] if parts else []


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """Apply ``KVGLINT_<SECTION>_<KEY>`` environment variables.

    Example: ``KVGLINT_VALIDATE_RULES_MAX_NUMBER_DISTANCE=8`` sets
    ``config["validate"]["rules"]["max_number_distance"] = 8``.
    """
    for name, raw in sorted(os.environ.items()):
        if not name.startswith(ENV_PREFIX):
            continue
        parts = [p for p in name[len(ENV_PREFIX) :].lower().split("_") if p]
        path = _resolve_env_path(config, parts)
        if not path:
            continue
        node = config
        for key in path[:-1]:
            node = node.setdefault(key, {})
        node[path[-1]] = _try_parse_env_value(raw)
    return config


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from a TOML file, merged over the defaults.

    Args:
        config_path: Path to the configuration file

    Returns:
        Configuration dictionary

    Raises:
        OSError: If the file cannot be read
        tomlkit.exceptions.ParseError: If the file is not valid TOML
    """
    content = config_path.read_text(encoding="utf-8")
    user_config = parse_toml(content)
    merged = merge_configs(DEFAULT_CONFIG, user_config)
    return _apply_env_overrides(merged)


def default_config() -> Dict[str, Any]:
    """Defaults with environment overrides, used when no file exists."""
    return _apply_env_overrides(copy.deepcopy(DEFAULT_CONFIG))


def get_kanjivg_directory(dir_override: Optional[Path], config: Dict[str, Any]) -> Path:
    """Resolve the KanjiVG directory from the CLI override or configuration."""
    if dir_override:
        return Path(dir_override)
    return Path(config.get("kanjivg", {}).get("dir", "kanji"))
