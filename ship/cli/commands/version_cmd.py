"""Version command - show the resolved current and next version."""

from __future__ import annotations

import typer

from ship.cli.commands._helpers import parse_requested_version, plan_or_exit
from ship.cli.context import build_context
from ship.core.errors import ErrorCode
from ship.output.report import print_plan
from ship.services.release import ReleaseService


def version(
    floor: str | None = typer.Option(
        None,
        "--version",
        help="Minimum version to plan for (e.g. 1.3.0)",
        show_default=False,
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Exit non-zero when no version source answered"
    ),
) -> None:
    """Resolve the published version from every configured source."""
    ctx = build_context()
    requested = parse_requested_version(floor, ctx)

    svc = ReleaseService(
        project=ctx.project,
        config=ctx.config,
        console=ctx.console,
        credentials=ctx.credentials,
    )
    plan = plan_or_exit(svc, requested, ctx)
    print_plan(plan, ctx.console)

    if strict and not plan.current.authoritative:
        raise typer.Exit(code=int(ErrorCode.NETWORK_ERROR))
