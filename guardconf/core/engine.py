"""Protocol for the engine that consumes a frozen configuration."""

from __future__ import annotations

from typing import Protocol

from .configuration import FrozenConfiguration


class Engine(Protocol):
    """Interface of a shrinking, optimizing and obfuscating engine.

    The engine writes ``STANDARD_STREAM`` reports to standard output,
    ``OutputTarget.file()`` reports to their file, and skips unset reports.
    Invalid paths and malformed filters are reported by the engine, not by
    the configuration layer.
    """

    def execute(self, configuration: FrozenConfiguration) -> None:
        """Process the class path described by the configuration.

        Args:
            configuration: The frozen configuration of a task.
        """
        ...
