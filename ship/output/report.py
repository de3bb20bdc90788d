"""Presentation of version resolutions and pipeline results.

Centralized formatting so that `version`, `build`, `upload` and `release`
print the same summary shape.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ship.output.console import Style
from ship.pipeline.model import (
    ArtifactMissing,
    BuildNotSucceeded,
    OperationCrashed,
    OperationFailure,
    OperationTimedOut,
    PipelineResult,
    ToolchainFailed,
    UploadRejected,
    UploaderNotConfigured,
)

if TYPE_CHECKING:
    from ship.output.console import ConsoleProtocol
    from ship.services.release import VersionPlan
    from ship.versioning.resolver import ResolvedVersion

__all__ = [
    "print_failure",
    "print_pipeline_result",
    "print_plan",
    "print_resolution",
]

_TAIL_LINES = 15


def _print_tail(output: str, console: ConsoleProtocol) -> None:
    lines = output.rstrip().splitlines()[-_TAIL_LINES:]
    for line in lines:
        console.print(f"    {line}", Style.DIM)


def print_failure(name: str, failure: OperationFailure, console: ConsoleProtocol) -> None:
    """Print one failed operation with its diagnostics."""
    console.error(f"{name}: {failure.message}")
    match failure:
        case ToolchainFailed(output=output) | UploadRejected(output=output) | OperationTimedOut(
            output=output
        ):
            if output.strip():
                _print_tail(output, console)
        case ArtifactMissing(directory=directory):
            if not directory.exists():
                console.print(f"    hint: {directory} does not exist", Style.DIM)
        case UploaderNotConfigured():
            console.print(f"    hint: {failure.hint}", Style.DIM)
        case BuildNotSucceeded() | OperationCrashed():
            pass


def print_resolution(resolved: ResolvedVersion, console: ConsoleProtocol) -> None:
    console.header("Current version")
    label = str(resolved.version)
    if not resolved.authoritative:
        label += " (no source answered)"
    elif resolved.floor_applied:
        label += " (requested)"
    console.print(label, Style.BOLD)

    for source_id, version in resolved.contributors:
        console.print(f"  {source_id}: {version}")
    for failure in resolved.failures:
        console.print(f"  {failure.source_id}: failed ({failure.reason})", Style.DIM)


def print_plan(plan: VersionPlan, console: ConsoleProtocol) -> None:
    print_resolution(plan.current, console)
    console.header("Next build")
    console.print(f"version: {plan.next_version}")
    console.print(f"build number: {plan.build_number}")


def print_pipeline_result(result: PipelineResult, console: ConsoleProtocol) -> None:
    """End-of-run summary: every target, every failure, never just the first."""
    console.header("Summary")
    for report in result.reports:
        status = "ok" if report.succeeded else "FAILED"
        console.print(
            f"  {report.name:<16} {status:<7} {report.duration_seconds:.1f}s",
            Style.DEFAULT if report.succeeded else Style.ERROR,
        )

    failed = result.failed_reports
    if failed:
        console.newline()
        for report in failed:
            if report.failure is not None:
                print_failure(report.name, report.failure, console)
        console.newline()
        console.error(result.summary())
    else:
        console.success(result.summary())
