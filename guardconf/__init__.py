"""guardconf - Build configuration accumulator for bytecode shrinkers.

Collect class path entries, processing flags, rules and report
destinations incrementally, then freeze them into a single record for
the shrinking, optimizing and obfuscating engine.
"""

from .core.project import Project
from .core.task import ShrinkTask
from .core.configuration import Configuration, FrozenConfiguration
from .core.entries import EntryList, FilteredEntry
from .core.script import BuildScript
from .core.types import OutputTarget, UNSET, STANDARD_STREAM

__all__ = [
    "Project",
    "ShrinkTask",
    "Configuration",
    "FrozenConfiguration",
    "EntryList",
    "FilteredEntry",
    "BuildScript",
    "OutputTarget",
    "UNSET",
    "STANDARD_STREAM",
]
