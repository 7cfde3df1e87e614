"""
kvglint.config.defaults - Default configuration values.
"""

from kvglint.core.rules import (
    DEFAULT_CANVAS_SIZE,
    DEFAULT_MAX_NUMBER_DISTANCE,
    DEFAULT_NUMBER_ROOT_STYLE,
    DEFAULT_STROKE_ROOT_STYLE,
)

CONFIG_FILE_NAME = ".kvglint.toml"

DEFAULT_CONFIG = {
    "kanjivg": {
        # Directory holding the KanjiVG .svg files
        "dir": "kanji",
    },
    "validate": {
        "files": {
            "included": ["*"],
            "excluded": [],
        },
        "rules": {
            "enabled": ["all"],
            "canvas_size": DEFAULT_CANVAS_SIZE,
            "max_number_distance": DEFAULT_MAX_NUMBER_DISTANCE,
            "stroke_root_style": dict(DEFAULT_STROKE_ROOT_STYLE),
            "number_root_style": dict(DEFAULT_NUMBER_ROOT_STYLE),
        },
    },
    "repair": {
        # Empty: overwrite files in place
        "output_dir": "",
        "files": {
            "included": ["*"],
            "excluded": [],
        },
    },
}
