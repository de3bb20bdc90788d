from __future__ import annotations

import os
from dataclasses import dataclass

import typer

from ship.core.config import Config, load_config
from ship.core.credentials import CredentialStore, load_credentials
from ship.core.errors import ErrorCode
from ship.core.project import Project, detect_project
from ship.core.result import Err
from ship.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    project: Project
    config: Config
    credentials: CredentialStore
    console: ConsoleProtocol


def build_context() -> CLIContext:
    project_result = detect_project()
    if isinstance(project_result, Err):
        typer.echo(f"error: {project_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    project = project_result.value

    config_result = load_config(project.config_path)
    if isinstance(config_result, Err):
        error = config_result.error
        typer.echo(f"error: {error.message}", err=True)
        if error.hint:
            typer.echo(f"hint: {error.hint}", err=True)
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    env = dict(os.environ)
    config = config_result.value.with_environment(env)

    return CLIContext(
        project=project,
        config=config,
        credentials=load_credentials(config.credentials, env),
        console=RichConsole(),
    )
