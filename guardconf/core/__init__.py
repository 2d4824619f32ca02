from .configuration import Configuration, FrozenConfiguration
from .engine import Engine
from .entries import EntryList, FilteredEntry
from .project import Project
from .script import BuildScript
from .task import ShrinkTask
from .types import STANDARD_STREAM, UNSET, OutputTarget

__all__ = [
    "Configuration",
    "FrozenConfiguration",
    "Engine",
    "EntryList",
    "FilteredEntry",
    "Project",
    "BuildScript",
    "ShrinkTask",
    "OutputTarget",
    "UNSET",
    "STANDARD_STREAM",
]
