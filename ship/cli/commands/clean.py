"""Clean command - remove build outputs and test reports."""

from __future__ import annotations

import os
import shutil
import stat
from collections.abc import Callable
from pathlib import Path

import typer

from ship.cli.context import build_context
from ship.core.result import Err
from ship.output.console import Style
from ship.platform.process import SubprocessRunner, run


def _remove_readonly(_func: Callable[[str], object], path: str, exc: BaseException) -> None:
    """Handle read-only files (e.g. signed frameworks copied into build/)."""
    if isinstance(exc, PermissionError):
        os.chmod(path, stat.S_IWRITE)
        os.unlink(path)
    else:
        raise exc


def clean(
    yes: bool = typer.Option(False, "--yes", "-y", help="Execute (default is dry-run)"),
    flutter: bool = typer.Option(True, "--flutter/--no-flutter", help="Also run `flutter clean`"),
) -> None:
    """Clean build outputs. Dry-run by default, use -y to execute."""
    ctx = build_context()
    flutter_dir = ctx.project.flutter_dir(ctx.config)

    dirs: list[Path] = [
        ctx.project.build_dir(ctx.config),
        flutter_dir / "coverage",
    ]
    existing = [d for d in dirs if d.exists()]

    if not existing and not flutter:
        ctx.console.print("Nothing to clean", Style.DIM)
        return

    ctx.console.header("EXECUTE" if yes else "DRY-RUN")
    for d in existing:
        ctx.console.print(f"  {d}", Style.DIM)
    if flutter:
        ctx.console.print(f"  {ctx.config.build.flutter} clean", Style.DIM)

    if not yes:
        ctx.console.print("Use -y to execute", Style.DIM)
        return

    for d in existing:
        shutil.rmtree(d, onexc=_remove_readonly)

    if flutter:
        result = run([ctx.config.build.flutter, "clean"], flutter_dir, runner=SubprocessRunner())
        if isinstance(result, Err):
            ctx.console.warning(f"flutter clean: {result.error}")

    ctx.console.success(f"Removed {len(existing)} directories")
