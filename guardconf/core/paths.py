"""Path normalization relative to a project base directory."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping

from loguru import logger

from .errors import EntryTypeError
from .types import PathLike

_PROPERTY = re.compile(r"<([^<>]+)>")


def replace_properties(text: str, properties: Mapping[str, str]) -> str:
    """Replace ``<name>`` references with property values.

    Numeric names are wildcard back-references and stay as they are.
    Undefined names also stay as they are; the engine reports them when it
    tries to open the path.

    Args:
        text: String possibly containing property references.
        properties: Property values by name.

    Returns:
        The string with every defined reference substituted.
    """

    def _substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        value = properties.get(name)
        if value is None:
            if not name.isdigit():
                logger.warning("Property '{}' is undefined in '{}'", name, text)
            return match.group(0)
        return str(value)

    return _PROPERTY.sub(_substitute, text)


def normalize_path(
    item: PathLike, base_dir: Path, properties: Mapping[str, str]
) -> Path:
    """Normalize a single path setting.

    Strings get property substitution and are anchored at ``base_dir``;
    path handles are used verbatim.

    Raises:
        EntryTypeError: If ``item`` is neither a string nor path-like.
    """
    if isinstance(item, str):
        return base_dir / replace_properties(item, properties)
    if isinstance(item, Path):
        return item
    if isinstance(item, os.PathLike):
        return Path(item)
    raise EntryTypeError(
        f"Expected a path string or path-like object, got {type(item).__name__}: {item!r}"
    )


def absolute_path(
    item: PathLike, base_dir: Path, properties: Mapping[str, str]
) -> Path:
    """Like ``normalize_path`` but relative path handles are anchored too."""
    path = normalize_path(item, base_dir, properties)
    if not path.is_absolute():
        path = base_dir / path
    return path
