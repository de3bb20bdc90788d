from __future__ import annotations

import os
from pathlib import Path

import typer

from ship import __version__
from ship.cli.commands.build_cmd import build
from ship.cli.commands.clean import clean
from ship.cli.commands.release_cmd import release
from ship.cli.commands.upload_cmd import upload
from ship.cli.commands.version_cmd import version
from ship.core.errors import ErrorCode
from ship.core.project import CONFIG_FILENAME, is_project_root


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(version)
app.command()(build)
app.command()(upload)
app.command()(release)
app.command()(clean)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    show_version: bool = typer.Option(False, "--version", help="Show version and exit."),
    project: Path | None = typer.Option(
        None,
        "--project",
        help="Project root (overrides auto detection)",
    ),
) -> None:
    if show_version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if project is not None:
        try:
            root = project.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --project: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir() or not is_project_root(root):
            typer.echo(
                f"error: --project '{root}' is not a release project (missing {CONFIG_FILENAME})",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

        os.environ["SHIP_PROJECT_ROOT"] = str(root)


def main() -> None:
    app()
