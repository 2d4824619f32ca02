"""Project: base directory, properties and the tasks configured against them."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from loguru import logger

from .errors import DuplicateTaskError, UnknownTaskError
from .paths import absolute_path
from .task import ShrinkTask


class Project:
    """A named collection of shrink tasks sharing one base directory.

    Relative paths given to any task resolve against the project base
    directory; ``<name>`` references in path strings resolve against the
    project properties.
    """

    def __init__(
        self,
        base_dir: Optional[Union[str, Path]] = None,
        properties: Optional[Mapping[str, str]] = None,
    ):
        """Initialize Project.

        Args:
            base_dir: Directory relative paths are anchored at; defaults to
                the current working directory.
            properties: Values for ``<name>`` references; defaults to the
                process environment.
        """
        self.base_dir = Path.cwd() if base_dir is None else Path(base_dir).absolute()
        self.properties: Dict[str, str] = (
            dict(os.environ) if properties is None else dict(properties)
        )
        self._tasks: Dict[str, ShrinkTask] = {}

    def create_task(self, name: str) -> ShrinkTask:
        """Create and register a task with a fresh configuration.

        Raises:
            DuplicateTaskError: If a task with this name already exists.
        """
        if name in self._tasks:
            raise DuplicateTaskError(f"Task '{name}' already exists")
        task = ShrinkTask(name, self)
        self._tasks[name] = task
        logger.debug("Created task {} in {}", name, self.base_dir)
        return task

    def get_task(self, name: str) -> ShrinkTask:
        """Look up a task by name.

        Raises:
            UnknownTaskError: If no task has this name.
        """
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTaskError(f"Unknown task '{name}'") from None

    def tasks(self) -> List[ShrinkTask]:
        return list(self._tasks.values())

    def file(self, path: Union[str, "os.PathLike[str]"]) -> Path:
        """Resolve a path against the project base directory."""
        return absolute_path(path, self.base_dir, self.properties)
