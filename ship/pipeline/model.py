"""Pipeline data model: failures, artifacts, per-target reports, run result."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Literal

from ship.core.result import Err, Ok, Result
from ship.pipeline.targets import Target

__all__ = [
    "Artifact",
    "ArtifactMissing",
    "BuildNotSucceeded",
    "OperationCrashed",
    "OperationFailure",
    "OperationKind",
    "OperationTimedOut",
    "Outcome",
    "PipelineFailed",
    "PipelineResult",
    "PipelineState",
    "TargetReport",
    "TargetState",
    "ToolchainFailed",
    "UploadRejected",
    "UploaderNotConfigured",
]

OperationKind = Literal["build", "upload"]

_OUTPUT_TAIL_LINES = 20


def _tail(output: str, lines: int = _OUTPUT_TAIL_LINES) -> str:
    return "\n".join(output.rstrip().splitlines()[-lines:])


def _short_command(command: tuple[str, ...]) -> str:
    shown = " ".join(command[:3])
    return f"{shown} ..." if len(command) > 3 else shown


# -----------------------------------------------------------------------------
# Failures
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ToolchainFailed:
    command: tuple[str, ...]
    returncode: int
    output: str = ""

    @property
    def message(self) -> str:
        return f"{_short_command(self.command)} failed (exit {self.returncode})"


@dataclass(frozen=True, slots=True)
class OperationTimedOut:
    command: tuple[str, ...]
    timeout_seconds: float
    output: str = ""

    @property
    def message(self) -> str:
        return f"{_short_command(self.command)} timed out after {self.timeout_seconds:g}s"


@dataclass(frozen=True, slots=True)
class ArtifactMissing:
    directory: Path
    pattern: str

    @property
    def message(self) -> str:
        return f"no artifact matching {self.pattern} in {self.directory}"


@dataclass(frozen=True, slots=True)
class UploadRejected:
    command: tuple[str, ...]
    returncode: int
    output: str = ""

    @property
    def message(self) -> str:
        return f"upload rejected by {_short_command(self.command)} (exit {self.returncode})"


@dataclass(frozen=True, slots=True)
class UploaderNotConfigured:
    target: Target

    @property
    def message(self) -> str:
        return f"no upload command configured for {self.target.display_name}"

    @property
    def hint(self) -> str:
        return f"Set [upload].{self.target.value} in release.toml."


@dataclass(frozen=True, slots=True)
class BuildNotSucceeded:
    target: Target

    @property
    def message(self) -> str:
        return f"skipped: the {self.target.display_name} build did not succeed in this run"


@dataclass(frozen=True, slots=True)
class OperationCrashed:
    error: str

    @property
    def message(self) -> str:
        return f"unexpected error: {self.error}"


OperationFailure = (
    ToolchainFailed
    | OperationTimedOut
    | ArtifactMissing
    | UploadRejected
    | UploaderNotConfigured
    | BuildNotSucceeded
    | OperationCrashed
)


# -----------------------------------------------------------------------------
# Artifacts and reports
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Artifact:
    """A build output on disk."""

    target: Target
    path: Path

    @property
    def upload_path(self) -> Path:
        """What is handed to the uploader (the bundle directory for web)."""
        if self.target is Target.WEB:
            return self.path.parent
        return self.path


type Outcome = Result[Artifact, OperationFailure]


class TargetState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PipelineState(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class TargetReport:
    """How one operation of a run ended.

    Attributes:
        name: Operation name, e.g. "build ios".
        target: The target the operation acted on.
        kind: build or upload.
        outcome: Ok(artifact) or Err(failure).
        started_at: UTC start time.
        finished_at: UTC end time.
    """

    name: str
    target: Target
    kind: OperationKind
    outcome: Outcome
    started_at: datetime
    finished_at: datetime

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Ok)

    @property
    def failure(self) -> OperationFailure | None:
        if isinstance(self.outcome, Err):
            return self.outcome.error
        return None

    @property
    def artifact(self) -> Artifact | None:
        if isinstance(self.outcome, Ok):
            return self.outcome.value
        return None

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "name": self.name,
            "target": self.target.value,
            "kind": self.kind,
            "status": "succeeded" if self.succeeded else "failed",
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
        }
        match self.outcome:
            case Ok(artifact):
                data["artifact"] = str(artifact.path)
            case Err(failure):
                data["error"] = failure.message
                output = getattr(failure, "output", "")
                if output:
                    data["output_tail"] = _tail(output)
        return data


_KIND_LABELS: dict[str, str] = {
    "build": "Build(s)",
    "upload": "Upload(s)",
    "release": "Release(s)",
}


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Every TargetReport of one pipeline run, in run order."""

    kind: str
    reports: tuple[TargetReport, ...]
    version: str | None = None
    build_number: int | None = None

    @property
    def succeeded(self) -> bool:
        return all(r.succeeded for r in self.reports)

    @property
    def failed_reports(self) -> tuple[TargetReport, ...]:
        return tuple(r for r in self.reports if not r.succeeded)

    @property
    def failed_targets(self) -> list[str]:
        """Display names of failed targets, each once, in run order."""
        names: list[str] = []
        for report in self.failed_reports:
            name = report.target.display_name
            if name not in names:
                names.append(name)
        return names

    @property
    def artifacts(self) -> list[Artifact]:
        return [r.artifact for r in self.reports if r.artifact is not None]

    def summary(self) -> str:
        """One line verdict, as printed at the end of a run."""
        label = _KIND_LABELS.get(self.kind, f"{self.kind.capitalize()}(s)")
        if self.succeeded:
            return f"{label} succeeded for all targets"
        return f"{label} for the following targets failed: [{' '.join(self.failed_targets)}]"

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "version": self.version,
            "build_number": self.build_number,
            "status": "succeeded" if self.succeeded else "failed",
            "failed_targets": self.failed_targets,
            "reports": [r.to_dict() for r in self.reports],
        }


class PipelineFailed(Exception):
    """Raised at the end of a run in which at least one target failed."""

    def __init__(self, result: PipelineResult) -> None:
        self.result = result
        details = "; ".join(
            f"{r.name}: {r.failure.message}" for r in result.failed_reports if r.failure is not None
        )
        super().__init__(f"{result.summary()} ({details})" if details else result.summary())

    @property
    def failed_targets(self) -> list[str]:
        return self.result.failed_targets
