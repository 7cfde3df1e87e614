"""
kvglint.config - Configuration loading and defaults
"""

from kvglint.config.defaults import CONFIG_FILE_NAME, DEFAULT_CONFIG
# The underscore helpers are imported by the environment override tests
from kvglint.config.loader import (
    _apply_env_overrides,
    _try_parse_env_value,
    default_config,
    find_config_file,
    get_kanjivg_directory,
    load_config,
    merge_configs,
    parse_toml,
    parse_toml_document,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_CONFIG",
    "default_config",
    "find_config_file",
    "get_kanjivg_directory",
    "load_config",
    "merge_configs",
    "parse_toml",
    "parse_toml_document",
]
