"""Accumulation of raw class path and configuration file entries."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple

from .errors import EntryTypeError
from .filters import FilterSpec, check_filter_spec, normalize_filter
from .paths import absolute_path
from .types import ClassPathEntry


@dataclass(frozen=True)
class FilteredEntry:
    """A raw entry paired with the filter it was declared with.

    Attributes:
        path: The raw entry (string, path handle, or opaque nested collection).
        filter: Filter spec stored as supplied, or None.
    """

    path: Any
    filter: Optional[FilterSpec] = None

    def filters(self):
        """Return the normalized filter patterns per category."""
        return normalize_filter(self.filter)


def is_collection(item: Any) -> bool:
    """Check whether an item is a collection of entries rather than an entry."""
    if isinstance(item, (str, bytes, os.PathLike, FilteredEntry, Mapping)):
        return False
    return isinstance(item, Iterable)


def _check_entry(item: Any, allow_collection: bool) -> None:
    if isinstance(item, (str, os.PathLike, FilteredEntry)):
        return
    if allow_collection and is_collection(item):
        return
    raise EntryTypeError(
        f"Unsupported entry type {type(item).__name__}: {item!r}; "
        "expected a path string, a path-like object or a collection of them"
    )


def expand_entries(item: Any) -> List[Any]:
    """Expand an input into entries, one level deep.

    None contributes nothing. A collection contributes its elements, and a
    collection nested inside it is kept as a single opaque element. Nested
    iterators are read into a tuple so they resolve the same way every time.

    Raises:
        EntryTypeError: If an element is not a path string, path-like
            object, filtered entry or (nested) collection.
    """
    if item is None:
        return []
    if not is_collection(item):
        _check_entry(item, allow_collection=False)
        return [item]

    expanded: List[Any] = []
    for element in item:
        if element is None:
            continue
        _check_entry(element, allow_collection=True)
        if is_collection(element) and iter(element) is element:
            element = tuple(element)
        expanded.append(element)
    return expanded


def _flatten(entry: Any) -> Iterator[Tuple[Any, Optional[FilterSpec]]]:
    if isinstance(entry, FilteredEntry):
        for path, inner in _flatten(entry.path):
            if inner is not None and entry.filter is not None:
                raise EntryTypeError(
                    f"Entry {path!r} has filter {inner!r} inside filter {entry.filter!r}"
                )
            yield path, inner if entry.filter is None else entry.filter
        return
    if entry is None:
        return
    if is_collection(entry):
        for inner in entry:
            yield from _flatten(inner)
        return
    yield entry, None


class EntryList:
    """Ordered, append-only list of raw entries.

    Entries keep the shape they were supplied in (strings stay strings,
    path handles stay path handles) until a resolved view is requested.
    Duplicates are kept.
    """

    def __init__(self, name: str):
        """Initialize an empty EntryList.

        Args:
            name: Setting name used in log and error messages.
        """
        self.name = name
        self._entries: List[Any] = []

    def append(self, item: Any) -> None:
        """Append an entry, or the elements of a collection of entries."""
        self._entries.extend(expand_entries(item))

    def append_with_filter(self, item: Any, filter_spec: Optional[FilterSpec]) -> None:
        """Append entries that all carry the given filter spec.

        Args:
            item: An entry or a collection of entries.
            filter_spec: Pattern string, category mapping, or None for none.

        Raises:
            EntryTypeError: If an element already carries a filter.
        """
        check_filter_spec(filter_spec)
        if filter_spec is None:
            self.append(item)
            return
        elements = expand_entries(item)
        for element in elements:
            if isinstance(element, FilteredEntry) and element.filter is not None:
                raise EntryTypeError(
                    f"Entry {element.path!r} already has filter {element.filter!r}; "
                    f"cannot add filter {filter_spec!r}"
                )
        self._entries.extend(FilteredEntry(element, filter_spec) for element in elements)

    def raw_entries(self) -> List[Any]:
        """Return the live list of raw entries.

        The same list object is returned every time, so changes made
        through it show up in later calls.
        """
        return self._entries

    def filters(self) -> List[Optional[FilterSpec]]:
        """Return the filter spec of each raw entry, None where unfiltered."""
        return [
            entry.filter if isinstance(entry, FilteredEntry) else None
            for entry in self._entries
        ]

    def resolved_files(self, base_dir: Path, properties: Mapping[str, str]) -> List[Path]:
        """Resolve every raw entry to an absolute path.

        Nested collections are expanded in place. The raw entries are not
        modified.
        """
        return [
            absolute_path(path, base_dir, properties)
            for entry in self._entries
            for path, _ in _flatten(entry)
        ]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"EntryList({self.name!r}, {self._entries!r})"


def resolve_class_path(
    entries: Iterable[Tuple[Any, bool]],
    base_dir: Path,
    properties: Mapping[str, str],
) -> List[ClassPathEntry]:
    """Resolve raw entries into class path entries.

    Args:
        entries: Pairs of (raw entry, output flag).
        base_dir: Directory relative paths are anchored at.
        properties: Values for ``<name>`` references in strings.

    Returns:
        ClassPathEntry per resolved path, in order.
    """
    resolved: List[ClassPathEntry] = []
    for entry, output in entries:
        for path, spec in _flatten(entry):
            resolved.append(
                ClassPathEntry(
                    path=absolute_path(path, base_dir, properties),
                    output=output,
                    filters=normalize_filter(spec),
                )
            )
    return resolved
