"""Build script loader for guardconf.yaml files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from loguru import logger

from .dsl import DSL_PREFIX, directives, keywords
from .errors import GuardconfError, ScriptError
from .project import Project
from .task import ShrinkTask

SCRIPT_NAME = "guardconf.yaml"


class BuildScript:
    """Loads a guardconf.yaml build script and replays it onto a project.

    A script holds an optional ``base_dir`` (relative to the script), an
    optional ``properties`` mapping, and a ``tasks`` mapping from task name
    to a list of directives. A directive is either a bare keyword such as
    ``dontobfuscate`` or a single-key mapping such as
    ``{injars: lib/app.jar}``; mapping arguments are passed as keyword
    arguments, anything else as the single positional argument.
    """

    def __init__(self, script_path: Optional[Union[str, Path]] = None):
        """Initialize build script.

        Args:
            script_path: Path to guardconf.yaml. If None, looks in current
                directory and parent directories.
        """
        self.script_path = self._find_script(script_path)
        self._script: Optional[Dict[str, Any]] = None

    def _find_script(
        self, script_path: Optional[Union[str, Path]] = None
    ) -> Optional[Path]:
        """Return the explicit script if it exists, else the nearest
        guardconf.yaml in the working directory or one of its parents."""
        if script_path is not None:
            path = Path(script_path)
            return path if path.is_file() else None

        cwd = Path.cwd()
        return next(
            (d / SCRIPT_NAME for d in (cwd, *cwd.parents) if (d / SCRIPT_NAME).is_file()),
            None,
        )

    def load(self) -> Dict[str, Any]:
        """Load the build script.

        Returns:
            Parsed script, or empty dict if no script was found.

        Raises:
            ScriptError: If the script cannot be read or is not a mapping.
        """
        if self.script_path is None:
            return {}

        if self._script is not None:
            return self._script

        try:
            with open(self.script_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ScriptError(f"Invalid {SCRIPT_NAME} at {self.script_path}: {e}") from e
        except OSError as e:
            raise ScriptError(f"Could not read {self.script_path}: {e}") from e

        if not isinstance(data, dict):
            raise ScriptError(f"{self.script_path} must contain a mapping at the top level")
        self._script = data
        return self._script

    def base_dir(self) -> Path:
        """Directory the script's relative paths resolve against."""
        root = self.script_path.parent if self.script_path is not None else Path.cwd()
        return (root / str(self.load().get("base_dir", "."))).absolute()

    def properties(self) -> Dict[str, str]:
        """Properties declared by the script, as strings."""
        declared = self.load().get("properties") or {}
        if not isinstance(declared, dict):
            raise ScriptError("'properties' must be a mapping")
        return {str(k): str(v) for k, v in declared.items()}

    def task_directives(self) -> Dict[str, List[Any]]:
        """Directive lists by task name, in script order."""
        tasks = self.load().get("tasks") or {}
        if not isinstance(tasks, dict):
            raise ScriptError("'tasks' must be a mapping of task name to directives")
        result: Dict[str, List[Any]] = {}
        for name, entries in tasks.items():
            if entries is None:
                entries = []
            if not isinstance(entries, list):
                raise ScriptError(f"Task '{name}' must be a list of directives")
            result[str(name)] = entries
        return result

    def create_project(self, properties: Optional[Mapping[str, str]] = None) -> Project:
        """Create a project for this script.

        Args:
            properties: Base properties; defaults to the process environment.
                Properties declared by the script take precedence.
        """
        merged = dict(os.environ) if properties is None else dict(properties)
        merged.update(self.properties())
        return Project(self.base_dir(), merged)

    def apply(self, project: Project) -> Project:
        """Create every scripted task in ``project`` and replay its directives."""
        for name, entries in self.task_directives().items():
            task = project.create_task(name)
            for index, entry in enumerate(entries):
                try:
                    apply_directive(task, entry)
                except ScriptError as e:
                    raise ScriptError(f"Task '{name}', directive {index + 1}: {e}") from e
            logger.debug("Applied {} directives to task {}", len(entries), name)
        return project


def apply_directive(task: ShrinkTask, entry: Any) -> None:
    """Apply one build-script directive to a task.

    Raises:
        ScriptError: If the directive is unknown or its arguments don't fit.
    """
    if isinstance(entry, str):
        if entry not in keywords(type(task)):
            raise ScriptError(f"'{entry}' is not a keyword that can be used without arguments")
        getattr(task, f"{DSL_PREFIX}{entry}")()
        return

    if not isinstance(entry, dict) or len(entry) != 1:
        raise ScriptError(f"Expected a keyword or a single-key mapping, got {entry!r}")

    name, args = next(iter(entry.items()))
    if name not in directives(type(task)):
        raise ScriptError(f"Unknown directive '{name}'")
    method = getattr(task, name)
    try:
        if args is None:
            method()
        elif isinstance(args, dict):
            method(**args)
        else:
            method(args)
    except GuardconfError as e:
        raise ScriptError(f"{name}: {e}") from e
    except (TypeError, ValueError) as e:
        raise ScriptError(f"Bad arguments for '{name}': {e}") from e
