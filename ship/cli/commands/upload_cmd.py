"""Upload command - push the latest built artifacts to the stores."""

from __future__ import annotations

import typer

from ship.cli.commands._helpers import report_and_exit, selected_targets
from ship.cli.context import build_context
from ship.pipeline.model import PipelineFailed
from ship.services.release import ReleaseService


def upload(
    ios: bool = typer.Option(False, "--ios", help="Upload the iOS ipa"),
    android: bool = typer.Option(False, "--android", help="Upload the Android app bundle"),
    web: bool = typer.Option(False, "--web", help="Upload the web bundle"),
) -> None:
    """Upload the selected targets (all of them if none is selected)."""
    ctx = build_context()
    targets = selected_targets(ios=ios, android=android, web=web)

    svc = ReleaseService(
        project=ctx.project,
        config=ctx.config,
        console=ctx.console,
        credentials=ctx.credentials,
    )
    try:
        result = svc.upload(targets)
    except PipelineFailed as e:
        result = e.result
    report_and_exit(result, ctx)
