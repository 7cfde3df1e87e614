"""
kvglint.core.files - Selection of KanjiVG files to process.

Files are selected by name filters where ``*`` matches anything and
every other character is literal. Filters are matched against the whole
file name without extension (e.g. "04e00", "04e00-Kaisho").
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

SVG_SUFFIX = ".svg"


def prepare_filters(filters: Sequence[str]) -> List[re.Pattern]:
    """Compile name filters: '*' becomes '.*', everything else is literal."""
    return [
        re.compile(".*".join(re.escape(part) for part in pattern.split("*")))
        for pattern in filters
    ]


def file_id(path: Path) -> str:
    """File identifier used in expected ids: the name without extension."""
    return path.stem


@dataclass
class FilesConfig:
    """
    Directory and name filters selecting the files to process.

    Attributes:
        directory: Directory scanned recursively
        included: Filters a file must match (at least one)
        excluded: Filters a file must not match (any)
    """

    directory: Path
    included: List[str] = field(default_factory=lambda: ["*"])
    excluded: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, directory: Path, data: Dict[str, Any]) -> "FilesConfig":
        """Create FilesConfig from a [<task>.files] config section."""
        return cls(
            directory=Path(directory),
            included=_as_list(data.get("included", ["*"])),
            excluded=_as_list(data.get("excluded", [])),
        )

    def matches(self, path: Path) -> bool:
        name = file_id(path)
        included = prepare_filters(self.included)
        excluded = prepare_filters(self.excluded)
        return any(f.fullmatch(name) for f in included) and not any(
            f.fullmatch(name) for f in excluded
        )

    def get_files(self) -> List[Path]:
        """
        List matching .svg files under the directory.

        Returns:
            Sorted list of file paths

        Raises:
            FileNotFoundError: If the directory does not exist
        """
        if not self.directory.is_dir():
            raise FileNotFoundError(f"KanjiVG directory not found: {self.directory}")
        return sorted(
            path
            for path in self.directory.rglob(f"*{SVG_SUFFIX}")
            if path.is_file() and self.matches(path)
        )


def _as_list(value: Any) -> List[str]:
    # Comma-separated strings are accepted too, e.g. from environment overrides
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item) for item in value]
