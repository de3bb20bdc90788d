"""Project detection and paths.

A release project is the directory holding `release.toml`. The Flutter
sources and build outputs are resolved relative to it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import Config
from .result import Err, Ok, Result

__all__ = [
    "CONFIG_FILENAME",
    "Project",
    "ProjectError",
    "detect_project",
    "find_project_upward",
    "is_project_root",
]

CONFIG_FILENAME = "release.toml"


@dataclass(frozen=True)
class ProjectError:
    """Error when the project cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Project:
    """A detected release project.

    The project root contains:
    - release.toml (required marker, may be empty)
    - the Flutter project (root itself unless [app].flutter_dir is set)
    - build/ outputs produced by `flutter build` and run reports
    """

    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    def flutter_dir(self, config: Config) -> Path:
        return (self.root / config.app.flutter_dir).resolve()

    def build_dir(self, config: Config) -> Path:
        """Flutter's build output directory."""
        return self.flutter_dir(config) / "build"

    def report_path(self, config: Config, kind: str) -> Path:
        """Where the JSON report of a pipeline run is written."""
        return self.build_dir(config) / f"ship-report-{kind}.json"

    def __str__(self) -> str:
        return str(self.root)


def is_project_root(path: Path) -> bool:
    return (path / CONFIG_FILENAME).is_file()


def find_project_upward(start: Path) -> Path | None:
    """Search upward from start for a directory holding release.toml."""
    for parent in (start, *start.parents):
        if is_project_root(parent):
            return parent
    return None


def detect_project(
    *,
    start_dir: Path | None = None,
    env_var: str = "SHIP_PROJECT_ROOT",
) -> Result[Project, ProjectError]:
    """Detect the project root.

    Detection order:
    1. SHIP_PROJECT_ROOT environment variable (if set, it must be valid)
    2. Search upward from start_dir (or cwd)
    """
    env_value = os.environ.get(env_var)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if env_path.is_dir() and is_project_root(env_path):
            return Ok(Project(root=env_path))
        return Err(
            ProjectError(
                message=f"${env_var} is set to '{env_value}' but it has no {CONFIG_FILENAME}",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    search_start = (start_dir or Path.cwd()).resolve()
    found = find_project_upward(search_start)
    if found is not None:
        return Ok(Project(root=found))

    return Err(
        ProjectError(
            message=f"Could not find project ({CONFIG_FILENAME} not found)",
            searched_from=search_start,
        )
    )
