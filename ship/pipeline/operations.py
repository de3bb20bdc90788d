"""Target operations: build one platform, upload one platform.

An operation never raises for an expected failure. Non-zero exits,
timeouts, missing artifacts and missing uploaders all come back as
Err(OperationFailure); anything else that escapes is turned into
OperationCrashed by the orchestrator.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from ship.core.config import ARTIFACT_PLACEHOLDER, BuildConfig
from ship.core.result import Err, Ok, Result
from ship.output.console import ConsoleProtocol, Style
from ship.platform.files import find_latest
from ship.platform.process import CommandRunner, ProcessError, run
from ship.pipeline.model import (
    Artifact,
    ArtifactMissing,
    OperationFailure,
    OperationKind,
    OperationTimedOut,
    ToolchainFailed,
    UploadRejected,
    UploaderNotConfigured,
)
from ship.pipeline.targets import Target, layout_for
from ship.versioning.semver import SemanticVersion

__all__ = [
    "BuildOperation",
    "TargetOperation",
    "UploadOperation",
    "build_command",
    "locate_artifact",
    "operation_name",
]


def operation_name(kind: OperationKind, target: Target) -> str:
    return f"{kind} {target.value}"


class TargetOperation(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def kind(self) -> OperationKind: ...

    @property
    def target(self) -> Target: ...

    @property
    def requires(self) -> str | None:
        """Name of an operation that must have succeeded earlier in the run."""
        ...

    def run(
        self,
        version: SemanticVersion | None,
        build_number: int | None,
        *,
        artifact: Artifact | None = None,
    ) -> Result[Artifact, OperationFailure]: ...


def locate_artifact(target: Target, build_dir: Path) -> Result[Artifact, ArtifactMissing]:
    """Most recent artifact of target under the Flutter build directory."""
    layout = layout_for(target)
    directory = build_dir / layout.output_dir
    found = find_latest(directory, layout.pattern)
    if found is None:
        return Err(ArtifactMissing(directory=directory, pattern=layout.pattern))
    return Ok(Artifact(target=target, path=found))


def build_command(
    target: Target,
    version: SemanticVersion,
    build_number: int,
    config: BuildConfig,
) -> list[str]:
    """`flutter build <kind> --release --build-name V --build-number N [extras]`."""
    args = [
        config.flutter,
        "build",
        layout_for(target).artifact_kind,
        "--release",
        "--build-name",
        str(version),
        "--build-number",
        str(build_number),
    ]
    if target is Target.IOS:
        args += ["--export-options-plist", config.ios_export_options]
    return args


def _as_failure(error: ProcessError, timeout: float) -> OperationTimedOut | ToolchainFailed:
    if error.timed_out:
        return OperationTimedOut(command=error.command, timeout_seconds=timeout, output=error.output)
    return ToolchainFailed(command=error.command, returncode=error.returncode, output=error.output)


class BuildOperation:
    """Run `flutter build` for one target and locate its artifact."""

    kind: OperationKind = "build"
    requires: str | None = None

    def __init__(
        self,
        target: Target,
        *,
        flutter_dir: Path,
        build_dir: Path,
        config: BuildConfig,
        runner: CommandRunner,
        console: ConsoleProtocol,
    ) -> None:
        self.target = target
        self.name = operation_name("build", target)
        self._flutter_dir = flutter_dir
        self._build_dir = build_dir
        self._config = config
        self._runner = runner
        self._console = console

    def run(
        self,
        version: SemanticVersion | None,
        build_number: int | None,
        *,
        artifact: Artifact | None = None,
    ) -> Result[Artifact, OperationFailure]:
        if version is None or build_number is None:
            raise ValueError(f"{self.name} needs a version and a build number")

        args = build_command(self.target, version, build_number, self._config)
        self._console.print(" ".join(args), Style.DIM)

        timeout = float(self._config.timeout_seconds)
        result = run(args, self._flutter_dir, timeout=timeout, runner=self._runner)
        if isinstance(result, Err):
            return Err(_as_failure(result.error, timeout))

        return locate_artifact(self.target, self._build_dir)


class UploadOperation:
    """Push one target's artifact through its configured upload command.

    The command is an argv list; `{artifact}` is replaced with the artifact
    path. Without a placeholder the path is appended as the last argument.
    """

    kind: OperationKind = "upload"

    def __init__(
        self,
        target: Target,
        *,
        command: tuple[str, ...],
        flutter_dir: Path,
        build_dir: Path,
        timeout_seconds: float,
        runner: CommandRunner,
        console: ConsoleProtocol,
        requires: str | None = None,
    ) -> None:
        self.target = target
        self.name = operation_name("upload", target)
        self.requires = requires
        self._command = command
        self._flutter_dir = flutter_dir
        self._build_dir = build_dir
        self._timeout = float(timeout_seconds)
        self._runner = runner
        self._console = console

    def run(
        self,
        version: SemanticVersion | None,
        build_number: int | None,
        *,
        artifact: Artifact | None = None,
    ) -> Result[Artifact, OperationFailure]:
        if not self._command and self.target is not Target.WEB:
            return Err(UploaderNotConfigured(self.target))

        if artifact is None:
            located = locate_artifact(self.target, self._build_dir)
            if isinstance(located, Err):
                return located
            artifact = located.value

        if not self._command:
            self._console.warning(
                f"no upload command configured for {self.target.display_name}, nothing to upload"
            )
            return Ok(artifact)

        args = self._substitute(artifact)
        self._console.print(f"{args[0]} <- {artifact.upload_path}", Style.DIM)

        result = run(args, self._flutter_dir, timeout=self._timeout, runner=self._runner)
        if isinstance(result, Err):
            error = result.error
            if error.timed_out:
                return Err(
                    OperationTimedOut(
                        command=error.command, timeout_seconds=self._timeout, output=error.output
                    )
                )
            return Err(
                UploadRejected(command=error.command, returncode=error.returncode, output=error.output)
            )
        return Ok(artifact)

    def _substitute(self, artifact: Artifact) -> list[str]:
        path = str(artifact.upload_path)
        if not any(ARTIFACT_PLACEHOLDER in arg for arg in self._command):
            return [*self._command, path]
        return [arg.replace(ARTIFACT_PLACEHOLDER, path) for arg in self._command]
