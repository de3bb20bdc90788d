"""Release service: resolve the version, then build and upload targets.

This is the only place where the version resolver and the orchestrator
meet. The version is resolved once per invocation and passed explicitly
to every build operation; uploads in the same run are gated on the build
of the same target.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from ship.core.config import Config, ConfigError
from ship.core.credentials import CredentialStore
from ship.core.project import Project
from ship.core.result import Err, Ok, Result
from ship.net.http import HttpClient, RealHttpClient
from ship.output.console import ConsoleProtocol, Style
from ship.pipeline.model import PipelineResult
from ship.pipeline.operations import BuildOperation, TargetOperation, UploadOperation, operation_name
from ship.pipeline.orchestrator import Clock, Orchestrator
from ship.pipeline.targets import Target, ordered
from ship.platform.files import atomic_write_text
from ship.platform.process import CommandRunner, SubprocessRunner
from ship.versioning.errors import BuildNumberError
from ship.versioning.resolver import ResolvedVersion, VersionResolver
from ship.versioning.semver import SemanticVersion, build_number
from ship.versioning.sources import SourceContext, build_sources

__all__ = ["ReleaseService", "VersionPlan"]

# Sources that cannot answer at all without a credential
_CREDENTIAL_SOURCES = {
    "app_store": "app_store_env",
    "play_store": "play_store_env",
}


@dataclass(frozen=True, slots=True)
class VersionPlan:
    """The version a build run stamps into its artifacts."""

    current: ResolvedVersion
    next_version: SemanticVersion
    build_number: int
    requested: SemanticVersion | None = None


class ReleaseService:
    """Version resolution and build/upload runs for one project."""

    def __init__(
        self,
        *,
        project: Project,
        config: Config,
        console: ConsoleProtocol,
        credentials: CredentialStore | None = None,
        runner: CommandRunner | None = None,
        http: HttpClient | None = None,
        resolver: VersionResolver | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._project = project
        self._config = config
        self._console = console
        self._credentials = credentials or CredentialStore()
        self._runner = runner or SubprocessRunner()
        self._http = http or RealHttpClient(timeout=float(config.versions.query_timeout_seconds))
        self._resolver = resolver or VersionResolver()
        self._clock = clock

    @property
    def flutter_dir(self) -> Path:
        return self._project.flutter_dir(self._config)

    @property
    def build_dir(self) -> Path:
        return self._project.build_dir(self._config)

    # -------------------------------------------------------------------------
    # Version
    # -------------------------------------------------------------------------

    def check_configuration(self) -> Result[str, ConfigError]:
        """Fail before any source runs if the identifier or a credential is missing."""
        identifier = self._config.require_app_identifier()
        if isinstance(identifier, Err):
            return identifier

        for source in self._config.versions.sources:
            env_field = _CREDENTIAL_SOURCES.get(source)
            if env_field is None or self._credentials.has(source):
                continue
            env_var = getattr(self._config.credentials, env_field)
            return Err(
                ConfigError(
                    f"missing credential for version source '{source}'",
                    path=self._project.config_path,
                    hint=f"Export {env_var}, or remove '{source}' from [versions].sources.",
                )
            )
        return identifier

    def resolve_current(
        self, *, floor: SemanticVersion | None = None
    ) -> Result[ResolvedVersion, ConfigError]:
        identifier = self.check_configuration()
        if isinstance(identifier, Err):
            return identifier

        sources = build_sources(
            self._config.versions.sources,
            http=self._http,
            project_dir=self.flutter_dir,
        )
        context = SourceContext(
            app_identifier=identifier.value,
            live=self._config.versions.live,
            credentials=self._credentials,
        )
        resolved = self._resolver.resolve(sources, context, floor=floor)

        for failure in resolved.failures:
            self._console.warning(f"version source {failure.message}")
        if not resolved.authoritative:
            self._console.warning(f"no version source answered, starting from {resolved.version}")
        return Ok(resolved)

    def plan_version(
        self, *, requested: SemanticVersion | None = None
    ) -> Result[VersionPlan, ConfigError | BuildNumberError]:
        """Next version to build.

        The current version with its patch bumped, or `requested` as-is
        when it is above every published version.
        """
        resolved = self.resolve_current(floor=requested)
        if isinstance(resolved, Err):
            return resolved
        current = resolved.value

        if requested is not None and current.floor_applied:
            next_version = requested
        else:
            next_version = current.version.bump_patch()

        number = build_number(next_version)
        if isinstance(number, Err):
            return number

        return Ok(
            VersionPlan(
                current=current,
                next_version=next_version,
                build_number=number.value,
                requested=requested,
            )
        )

    # -------------------------------------------------------------------------
    # Pipelines
    # -------------------------------------------------------------------------

    def build_operations(self, targets: Sequence[Target]) -> list[TargetOperation]:
        return [
            BuildOperation(
                target,
                flutter_dir=self.flutter_dir,
                build_dir=self.build_dir,
                config=self._config.build,
                runner=self._runner,
                console=self._console,
            )
            for target in ordered(targets)
        ]

    def upload_operations(
        self, targets: Sequence[Target], *, after_build: bool = False
    ) -> list[TargetOperation]:
        return [
            UploadOperation(
                target,
                command=self._config.upload.command_for(target.value),
                flutter_dir=self.flutter_dir,
                build_dir=self.build_dir,
                timeout_seconds=self._config.upload.timeout_seconds,
                runner=self._runner,
                console=self._console,
                requires=operation_name("build", target) if after_build else None,
            )
            for target in ordered(targets)
        ]

    def build(self, targets: Sequence[Target], plan: VersionPlan) -> PipelineResult:
        """Build every target; raises PipelineFailed if any build failed."""
        return self._execute(
            "build",
            self.build_operations(targets),
            version=plan.next_version,
            number=plan.build_number,
        )

    def upload(self, targets: Sequence[Target]) -> PipelineResult:
        """Upload the latest artifact of every target found on disk."""
        return self._execute("upload", self.upload_operations(targets), version=None, number=None)

    def release(self, targets: Sequence[Target], plan: VersionPlan) -> PipelineResult:
        """Build every target, then upload those whose build succeeded."""
        operations = [
            *self.build_operations(targets),
            *self.upload_operations(targets, after_build=True),
        ]
        return self._execute(
            "release",
            operations,
            version=plan.next_version,
            number=plan.build_number,
        )

    def _execute(
        self,
        kind: str,
        operations: list[TargetOperation],
        *,
        version: SemanticVersion | None,
        number: int | None,
    ) -> PipelineResult:
        orchestrator = Orchestrator(self._console, clock=self._clock)
        return orchestrator.execute(
            operations,
            kind=kind,
            version=version,
            build_number=number,
            on_complete=self._write_report,
        )

    def _write_report(self, result: PipelineResult) -> None:
        path = self._project.report_path(self._config, result.kind)
        try:
            atomic_write_text(path, json.dumps(result.to_dict(), indent=2) + "\n")
        except OSError as e:
            self._console.warning(f"could not write run report {path}: {e}")
            return
        self._console.print(f"report: {path}", Style.DIM)
