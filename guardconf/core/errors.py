"""Exceptions raised by the guardconf configuration model."""

from __future__ import annotations


class GuardconfError(Exception):
    """Base class for all guardconf errors."""


class EntryTypeError(GuardconfError, TypeError):
    """Raised when a class path or configuration entry has an unsupported type."""


class FilterTypeError(GuardconfError, TypeError):
    """Raised when a filter spec is neither a pattern string nor a mapping."""


class SpecificationTypeError(GuardconfError, TypeError):
    """Raised when a class specification is neither a string nor a mapping."""


class UnknownFieldError(GuardconfError, KeyError):
    """Raised when an output field name does not exist."""


class UnknownTaskError(GuardconfError, KeyError):
    """Raised when a task is looked up by a name that was never created."""


class DuplicateTaskError(GuardconfError, ValueError):
    """Raised when a task name is registered twice in one project."""


class ScriptError(GuardconfError, ValueError):
    """Raised when a build script is unreadable or contains bad directives."""
