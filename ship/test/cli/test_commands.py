from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest
import typer

from ship.cli.context import CLIContext
from ship.core.config import Config, ConfigError
from ship.core.credentials import CredentialStore
from ship.core.errors import ErrorCode
from ship.core.project import Project
from ship.core.result import Err, Ok, Result
from ship.output.console import MockConsole
from ship.pipeline.model import Artifact, PipelineFailed, PipelineResult, TargetReport, ToolchainFailed
from ship.pipeline.targets import Target
from ship.services.release import VersionPlan
from ship.versioning.resolver import ResolvedVersion
from ship.versioning.semver import SemanticVersion

V = SemanticVersion.parse


def _ctx(tmp_path: Path) -> CLIContext:
    (tmp_path / "release.toml").write_text("", encoding="utf-8")
    return CLIContext(
        project=Project(root=tmp_path),
        config=Config(),
        credentials=CredentialStore(),
        console=MockConsole(),
    )


def _result(kind: str, targets: list[Target], failing: set[Target]) -> PipelineResult:
    now = datetime.now(UTC)
    reports = tuple(
        TargetReport(
            name=f"{kind} {t.value}",
            target=t,
            kind="build",
            outcome=Err(ToolchainFailed(("flutter",), 1)) if t in failing else Ok(Artifact(t, Path("/x"))),
            started_at=now,
            finished_at=now,
        )
        for t in targets
    )
    return PipelineResult(kind=kind, reports=reports)


class FakeService:
    """Stands in for ReleaseService in command modules."""

    plan: Result[VersionPlan, ConfigError] = Ok(
        VersionPlan(
            current=ResolvedVersion(version=V("1.3.1"), authoritative=True),
            next_version=V("1.3.2"),
            build_number=1003002,
        )
    )
    failing: set[Target] = set()
    seen: dict[str, object] = {}

    def __init__(self, **_: object) -> None:
        pass

    def plan_version(self, *, requested: SemanticVersion | None = None) -> Result[VersionPlan, ConfigError]:
        FakeService.seen["requested"] = requested
        return FakeService.plan

    def _run(self, kind: str, targets: list[Target]) -> PipelineResult:
        FakeService.seen["targets"] = list(targets)
        result = _result(kind, list(targets), FakeService.failing)
        if not result.succeeded:
            raise PipelineFailed(result)
        return result

    def build(self, targets: list[Target], plan: VersionPlan) -> PipelineResult:
        FakeService.seen["plan"] = plan
        return self._run("build", targets)

    def upload(self, targets: list[Target]) -> PipelineResult:
        return self._run("upload", targets)

    def release(self, targets: list[Target], plan: VersionPlan) -> PipelineResult:
        return self._run("release", targets)


@pytest.fixture(autouse=True)
def _reset_fake() -> None:
    FakeService.failing = set()
    FakeService.seen = {}
    FakeService.plan = Ok(
        VersionPlan(
            current=ResolvedVersion(version=V("1.3.1"), authoritative=True),
            next_version=V("1.3.2"),
            build_number=1003002,
        )
    )


def _patch(module: object, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CLIContext:
    ctx = _ctx(tmp_path)
    monkeypatch.setattr(module, "build_context", lambda: ctx)
    monkeypatch.setattr(module, "ReleaseService", FakeService)
    return ctx


def test_build_without_flags_builds_every_target(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.build_cmd as build_cmd

    ctx = _patch(build_cmd, tmp_path, monkeypatch)

    build_cmd.build(ios=False, android=False, web=False, version=None)

    assert FakeService.seen["targets"] == [Target.IOS, Target.ANDROID, Target.WEB]
    assert FakeService.seen["requested"] is None
    assert isinstance(ctx.console, MockConsole)
    assert not ctx.console.has_error()


def test_build_failure_exits_with_pipeline_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.build_cmd as build_cmd

    ctx = _patch(build_cmd, tmp_path, monkeypatch)
    FakeService.failing = {Target.IOS}

    with pytest.raises(typer.Exit) as exc:
        build_cmd.build(ios=True, android=True, web=False, version="1.4.0")

    assert exc.value.exit_code == int(ErrorCode.PIPELINE_ERROR)
    assert FakeService.seen["requested"] == V("1.4.0")
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("Build(s) for the following targets failed: [iOS]")


def test_build_rejects_malformed_version(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.build_cmd as build_cmd

    _patch(build_cmd, tmp_path, monkeypatch)

    with pytest.raises(typer.Exit) as exc:
        build_cmd.build(ios=False, android=False, web=True, version="1.4-beta")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert "targets" not in FakeService.seen


def test_build_config_error_exits_before_running(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.build_cmd as build_cmd

    ctx = _patch(build_cmd, tmp_path, monkeypatch)
    FakeService.plan = Err(ConfigError("missing app identifier", hint="export APP_IDENTIFIER"))

    with pytest.raises(typer.Exit) as exc:
        build_cmd.build(ios=False, android=False, web=False, version=None)

    assert exc.value.exit_code == int(ErrorCode.CONFIG_ERROR)
    assert "targets" not in FakeService.seen
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("hint: export APP_IDENTIFIER")


def test_upload_selected_targets(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.upload_cmd as upload_cmd

    _patch(upload_cmd, tmp_path, monkeypatch)

    upload_cmd.upload(ios=False, android=True, web=True)

    assert FakeService.seen["targets"] == [Target.ANDROID, Target.WEB]


def test_upload_failure_exits_non_zero(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.upload_cmd as upload_cmd

    _patch(upload_cmd, tmp_path, monkeypatch)
    FakeService.failing = {Target.WEB}

    with pytest.raises(typer.Exit) as exc:
        upload_cmd.upload(ios=False, android=False, web=False)

    assert exc.value.exit_code == int(ErrorCode.PIPELINE_ERROR)


def test_release_runs_selected_targets(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.release_cmd as release_cmd

    _patch(release_cmd, tmp_path, monkeypatch)

    release_cmd.release(ios=True, android=False, web=False, version=None)

    assert FakeService.seen["targets"] == [Target.IOS]


def test_version_strict_without_sources(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.version_cmd as version_cmd

    ctx = _patch(version_cmd, tmp_path, monkeypatch)
    FakeService.plan = Ok(
        VersionPlan(
            current=ResolvedVersion(version=V("0.0.0"), authoritative=False),
            next_version=V("0.0.1"),
            build_number=1,
        )
    )

    version_cmd.version(floor=None, strict=False)
    assert isinstance(ctx.console, MockConsole)
    assert "version: 0.0.1" in ctx.console.messages

    with pytest.raises(typer.Exit) as exc:
        version_cmd.version(floor=None, strict=True)
    assert exc.value.exit_code == int(ErrorCode.NETWORK_ERROR)


def test_clean_is_dry_run_by_default(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.clean as clean_cmd

    ctx = _ctx(tmp_path)
    monkeypatch.setattr(clean_cmd, "build_context", lambda: ctx)
    (tmp_path / "build" / "web").mkdir(parents=True)

    clean_cmd.clean(yes=False, flutter=False)

    assert (tmp_path / "build" / "web").is_dir()
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("DRY-RUN")


def test_clean_removes_outputs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import ship.cli.commands.clean as clean_cmd

    ctx = _ctx(tmp_path)
    monkeypatch.setattr(clean_cmd, "build_context", lambda: ctx)
    (tmp_path / "build" / "web").mkdir(parents=True)
    (tmp_path / "coverage").mkdir()

    clean_cmd.clean(yes=True, flutter=False)

    assert not (tmp_path / "build").exists()
    assert not (tmp_path / "coverage").exists()
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("Removed 2 directories")
