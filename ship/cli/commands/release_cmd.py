"""Release command - build then upload in one run."""

from __future__ import annotations

import typer

from ship.cli.commands._helpers import (
    parse_requested_version,
    plan_or_exit,
    report_and_exit,
    selected_targets,
)
from ship.cli.context import build_context
from ship.output.report import print_plan
from ship.pipeline.model import PipelineFailed
from ship.services.release import ReleaseService


def release(
    ios: bool = typer.Option(False, "--ios", help="Release the iOS app"),
    android: bool = typer.Option(False, "--android", help="Release the Android app"),
    web: bool = typer.Option(False, "--web", help="Release the web app"),
    version: str | None = typer.Option(
        None,
        "--version",
        help="Release at least this version (e.g. 1.3.0)",
        show_default=False,
    ),
) -> None:
    """Build the selected targets, then upload each one whose build succeeded."""
    ctx = build_context()
    requested = parse_requested_version(version, ctx)
    targets = selected_targets(ios=ios, android=android, web=web)

    svc = ReleaseService(
        project=ctx.project,
        config=ctx.config,
        console=ctx.console,
        credentials=ctx.credentials,
    )
    plan = plan_or_exit(svc, requested, ctx)
    print_plan(plan, ctx.console)

    try:
        result = svc.release(targets, plan)
    except PipelineFailed as e:
        result = e.result
    report_and_exit(result, ctx)
