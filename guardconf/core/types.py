"""Type definitions for the guardconf configuration model."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

PathLike = Union[str, "os.PathLike[str]"]

# Optional report destinations of a configuration.
OUTPUT_FIELDS: Tuple[str, ...] = (
    "dump",
    "print_configuration",
    "print_seeds",
    "print_mapping",
    "print_usage",
)


class OutputKind(str, Enum):
    """State of an optional report destination."""

    UNSET = "unset"
    STANDARD_STREAM = "stdout"
    FILE = "file"


@dataclass(frozen=True)
class OutputTarget:
    """Destination of an optional report.

    Exactly one of three states holds: unset, the standard output stream,
    or a file path. Use the module level ``UNSET`` and ``STANDARD_STREAM``
    values and ``OutputTarget.file()`` rather than building instances by hand.

    Attributes:
        kind: Which of the three states holds.
        path: Target file, only set when ``kind`` is ``OutputKind.FILE``.
    """

    kind: OutputKind
    path: Optional[Path] = None

    @staticmethod
    def file(path: PathLike) -> "OutputTarget":
        """Create a target writing to the given file.

        Args:
            path: Target file; ``Path`` instances are kept as they are.

        Returns:
            OutputTarget in the file state.
        """
        resolved = path if isinstance(path, Path) else Path(path)
        return OutputTarget(OutputKind.FILE, resolved)

    @property
    def is_unset(self) -> bool:
        return self.kind is OutputKind.UNSET

    @property
    def is_standard_stream(self) -> bool:
        return self.kind is OutputKind.STANDARD_STREAM

    @property
    def is_file(self) -> bool:
        return self.kind is OutputKind.FILE

    def file_or_none(self) -> Optional[Path]:
        """Return the target file, or None when there is no file to track.

        Unset targets and standard stream targets both read as None.
        """
        return self.path if self.kind is OutputKind.FILE else None

    def describe(self) -> Optional[str]:
        """Render the target for JSON output ("-" stands for standard output)."""
        if self.kind is OutputKind.FILE:
            return str(self.path)
        if self.kind is OutputKind.STANDARD_STREAM:
            return "-"
        return None


UNSET = OutputTarget(OutputKind.UNSET)
STANDARD_STREAM = OutputTarget(OutputKind.STANDARD_STREAM)


@dataclass(frozen=True)
class ClassPathEntry:
    """A resolved class path element handed to the processing engine.

    Attributes:
        path: Absolute path of the jar, archive or directory.
        output: Whether the entry is an output of the processing step.
        filters: Read-only mapping of filter category -> patterns, empty
            when unfiltered.
    """

    path: Path
    output: bool = False
    filters: Mapping[str, Tuple[str, ...]] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "filters", MappingProxyType(dict(self.filters)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "output": self.output,
            "filters": {k: list(v) for k, v in self.filters.items()},
        }


@dataclass(frozen=True)
class ClassSpecificationRule:
    """An unparsed keep or assume rule.

    Attributes:
        kind: Rule keyword, e.g. 'keep' or 'assumenosideeffects'.
        specification: Class specification text, or a mapping of
            class specification arguments (name, access, extends, ...).
            Mappings are deep-copied into a read-only mapping.
        allow_shrinking: Whether matched items may still be removed.
        allow_optimization: Whether matched items may still be optimized.
        allow_obfuscation: Whether matched items may still be renamed.
    """

    kind: str
    specification: Union[str, Mapping[str, Any]] = field(hash=False)
    allow_shrinking: bool = False
    allow_optimization: bool = False
    allow_obfuscation: bool = False

    def __post_init__(self):
        if isinstance(self.specification, Mapping):
            object.__setattr__(
                self,
                "specification",
                MappingProxyType(copy.deepcopy(dict(self.specification))),
            )

    def to_dict(self) -> Dict[str, Any]:
        spec = self.specification
        return {
            "kind": self.kind,
            "specification": spec if isinstance(spec, str) else dict(spec),
            "allow_shrinking": self.allow_shrinking,
            "allow_optimization": self.allow_optimization,
            "allow_obfuscation": self.allow_obfuscation,
        }
