"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from ship.core.errors import ErrorCode
from ship.core.result import Err, Result
from ship.output.console import Style
from ship.output.report import print_pipeline_result
from ship.pipeline.model import PipelineResult
from ship.pipeline.targets import Target
from ship.versioning.errors import BuildNumberError
from ship.versioning.semver import SemanticVersion, parse_version

if TYPE_CHECKING:
    from ship.cli.context import CLIContext
    from ship.services.release import ReleaseService, VersionPlan


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.CONFIG_ERROR,
) -> T:
    """Return the Ok value, or print the error and exit.

    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
    return result.value


def selected_targets(*, ios: bool, android: bool, web: bool) -> list[Target]:
    """Targets chosen by flags; no flag at all means every target."""
    chosen = [
        target
        for target, flag in ((Target.IOS, ios), (Target.ANDROID, android), (Target.WEB, web))
        if flag
    ]
    return chosen or list(Target)


def parse_requested_version(raw: str | None, ctx: CLIContext) -> SemanticVersion | None:
    if raw is None:
        return None
    result = parse_version(raw)
    if isinstance(result, Err):
        ctx.console.error(f"invalid --version: {result.error.message}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    return result.value


def report_and_exit(result: PipelineResult, ctx: CLIContext) -> None:
    """Print the end-of-run summary; exit non-zero iff a target failed."""
    print_pipeline_result(result, ctx.console)
    if not result.succeeded:
        raise typer.Exit(code=int(ErrorCode.PIPELINE_ERROR))


def plan_or_exit(
    service: ReleaseService,
    requested: SemanticVersion | None,
    ctx: CLIContext,
) -> VersionPlan:
    result = service.plan_version(requested=requested)
    if isinstance(result, Err) and isinstance(result.error, BuildNumberError):
        exit_on_error(result, ctx, ErrorCode.USER_ERROR)
    return exit_on_error(result, ctx, ErrorCode.CONFIG_ERROR)
