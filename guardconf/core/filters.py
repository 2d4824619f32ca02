"""Filter specifications for class path entries and filter-list settings."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from loguru import logger

from .errors import FilterTypeError

DEFAULT_CATEGORY = "filter"

FILTER_CATEGORIES: Tuple[str, ...] = (
    "filter",
    "apkfilter",
    "aabfilter",
    "jarfilter",
    "aarfilter",
    "warfilter",
    "earfilter",
    "jmodfilter",
    "zipfilter",
)

# A single pattern string, or filter category -> pattern string.
FilterSpec = Union[str, Mapping[str, Optional[str]]]


def comma_separated_list(text: Optional[str]) -> List[str]:
    """Split a comma separated pattern string.

    Args:
        text: Patterns such as ``"!**.txt,com/example/**"``.

    Returns:
        The stripped, non-empty patterns in order.
    """
    if text is None:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def internal_class_name(name: str) -> str:
    """Convert an external class or package name to its internal form."""
    return name.replace(".", "/")


def check_filter_spec(spec: Any) -> None:
    """Fail fast on filter specs of the wrong type.

    Raises:
        FilterTypeError: If ``spec`` is not None, a string or a mapping.
    """
    if spec is None or isinstance(spec, (str, Mapping)):
        return
    raise FilterTypeError(
        f"Filter must be a pattern string or a mapping of filter categories, "
        f"got {type(spec).__name__}: {spec!r}"
    )


def normalize_filter(spec: Optional[FilterSpec]) -> Dict[str, Tuple[str, ...]]:
    """Expand a filter spec into patterns per category.

    A plain string is shorthand for the default ``filter`` category.
    Unknown categories are kept; the engine decides what they mean.

    Args:
        spec: Filter spec as supplied by the build script.

    Returns:
        Dictionary of category -> tuple of patterns.
    """
    check_filter_spec(spec)
    if spec is None:
        return {}
    if isinstance(spec, str):
        return {DEFAULT_CATEGORY: tuple(comma_separated_list(spec))}

    normalized: Dict[str, Tuple[str, ...]] = {}
    for category, patterns in spec.items():
        if category not in FILTER_CATEGORIES:
            logger.warning("Unknown filter category '{}'", category)
        if patterns is None:
            continue
        normalized[category] = tuple(comma_separated_list(str(patterns)))
    return normalized


def extend_filter(
    current: Optional[List[str]],
    pattern: Optional[str],
    internal: bool = False,
) -> List[str]:
    """Extend a filter-list setting.

    The first call initializes an unset (None) filter to an empty list.
    A pattern appends its comma separated parts; no pattern leaves an
    initialized list as it is.

    Args:
        current: The current filter list, None while unset.
        pattern: Comma separated patterns to append, or None.
        internal: Convert class names to their internal form first.

    Returns:
        The initialized filter list (``current`` itself once it exists).
    """
    if current is None:
        current = []
    if pattern is not None:
        if internal:
            pattern = internal_class_name(pattern)
        current.extend(comma_separated_list(pattern))
    return current
