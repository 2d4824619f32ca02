from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from ..core.entries import FilteredEntry
from ..core.errors import GuardconfError, UnknownTaskError
from ..core.project import Project
from ..core.script import BuildScript
from ..core.task import ShrinkTask

app = typer.Typer(help="guardconf CLI")

ENTRY_LISTS = {
    "configuration": ShrinkTask.get_configuration_files,
    "injars": ShrinkTask.get_in_jar_files,
    "outjars": ShrinkTask.get_out_jar_files,
    "libraryjars": ShrinkTask.get_library_jar_files,
}


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _project(script: Optional[Path]) -> Project:
    build = BuildScript(script)
    if build.script_path is None:
        typer.echo("No guardconf.yaml found", err=True)
        raise typer.Exit(code=2)
    try:
        return build.apply(build.create_project())
    except GuardconfError as exc:
        typer.echo(f"Build script error: {exc}", err=True)
        raise typer.Exit(code=4)


def _task(project: Project, name: str) -> ShrinkTask:
    try:
        return project.get_task(name)
    except UnknownTaskError as exc:
        typer.echo(exc.args[0], err=True)
        raise typer.Exit(code=3)


@app.command()
def tasks(
    script: Optional[Path] = typer.Option(None, "--script"),
    log_level: str = typer.Option("WARNING", "--log-level"),
):
    _configure_logging(log_level)
    project = _project(script)
    typer.echo(json.dumps([
        {
            "name": task.name,
            "injars": len(task.get_in_jar_files()),
            "outjars": len(task.get_out_jar_files()),
            "libraryjars": len(task.get_library_jar_files()),
        }
        for task in project.tasks()
    ], indent=2))


@app.command()
def show(
    task: str,
    script: Optional[Path] = typer.Option(None, "--script"),
    log_level: str = typer.Option("WARNING", "--log-level"),
):
    """Print the frozen configuration of a task as JSON."""
    _configure_logging(log_level)
    frozen = _task(_project(script), task).freeze()
    typer.echo(json.dumps(frozen.to_dict(), indent=2))


@app.command()
def outputs(
    task: str,
    script: Optional[Path] = typer.Option(None, "--script"),
    log_level: str = typer.Option("WARNING", "--log-level"),
):
    """Print the files a task writes, for up-to-date tracking."""
    _configure_logging(log_level)
    t = _task(_project(script), task)
    typer.echo(json.dumps({
        "reports": {k: str(v) for k, v in t.output_files().items()},
        "outjars": [str(p) for p in t.get_out_jar_file_collection()],
    }, indent=2))


@app.command()
def entries(
    task: str,
    kind: str = typer.Option("injars", "--list", help="configuration, injars, outjars or libraryjars"),
    script: Optional[Path] = typer.Option(None, "--script"),
    log_level: str = typer.Option("WARNING", "--log-level"),
):
    """Print the raw, unresolved entries of one entry list."""
    _configure_logging(log_level)
    getter = ENTRY_LISTS.get(kind)
    if getter is None:
        typer.echo(f"Unknown entry list '{kind}'", err=True)
        raise typer.Exit(code=2)
    t = _task(_project(script), task)
    typer.echo(json.dumps([_describe(entry) for entry in getter(t)], indent=2))


def _describe(entry):
    if isinstance(entry, FilteredEntry):
        return {"path": _describe(entry.path), "filter": entry.filter}
    if isinstance(entry, (str, Path)):
        return str(entry)
    if isinstance(entry, (list, tuple, set, frozenset)):
        return [_describe(inner) for inner in entry]
    return repr(entry)


if __name__ == "__main__":
    app()
