from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from guardconf.core.configuration import FrozenConfiguration
from guardconf.core.project import Project
from guardconf.core.task import ShrinkTask


class RecordingEngine:
    """Engine stand-in that remembers the configurations it received."""

    def __init__(self):
        self.received: List[FrozenConfiguration] = []

    def execute(self, configuration: FrozenConfiguration) -> None:
        self.received.append(configuration)


@pytest.fixture()
def project(tmp_path: Path) -> Project:
    return Project(tmp_path, {"sdk": "/opt/sdk", "flavor": "release"})


@pytest.fixture()
def task(project: Project) -> ShrinkTask:
    return project.create_task("proguard")


@pytest.fixture()
def engine() -> RecordingEngine:
    return RecordingEngine()
