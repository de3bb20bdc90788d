"""Tests for ship.pipeline.orchestrator module."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from ship.core.result import Err, Ok, Result
from ship.output.console import MockConsole
from ship.pipeline.model import (
    Artifact,
    BuildNotSucceeded,
    OperationCrashed,
    OperationFailure,
    OperationKind,
    PipelineFailed,
    PipelineResult,
    PipelineState,
    TargetState,
    ToolchainFailed,
)
from ship.pipeline.orchestrator import Orchestrator
from ship.pipeline.targets import Target
from ship.versioning.semver import SemanticVersion

VERSION = SemanticVersion.parse("1.3.2")


@dataclass
class FakeOperation:
    target: Target
    kind: OperationKind = "build"
    fail: bool = False
    crash: bool = False
    requires: str | None = None
    calls: list[tuple[SemanticVersion | None, int | None, Artifact | None]] = field(
        default_factory=list
    )

    @property
    def name(self) -> str:
        return f"{self.kind} {self.target.value}"

    def run(
        self,
        version: SemanticVersion | None,
        build_number: int | None,
        *,
        artifact: Artifact | None = None,
    ) -> Result[Artifact, OperationFailure]:
        self.calls.append((version, build_number, artifact))
        if self.crash:
            raise RuntimeError("keychain locked")
        if self.fail:
            return Err(ToolchainFailed(command=("flutter", "build"), returncode=1, output="boom"))
        return Ok(Artifact(self.target, Path(f"/out/{self.target.value}.bin")))


def _clock() -> Callable[[], datetime]:
    ticks = itertools.count()
    start = datetime(2026, 1, 1, tzinfo=UTC)
    return lambda: start + timedelta(seconds=next(ticks))


class TestContinueOnError:
    """A failing target never stops the others."""

    def test_ios_fails_android_and_web_still_build(self) -> None:
        ops = [
            FakeOperation(Target.IOS, fail=True),
            FakeOperation(Target.ANDROID),
            FakeOperation(Target.WEB),
        ]
        console = MockConsole()
        result = Orchestrator(console).run(ops, kind="build", version=VERSION, build_number=1003002)

        assert not result.succeeded
        assert result.failed_targets == ["iOS"]
        assert [a.target for a in result.artifacts] == [Target.ANDROID, Target.WEB]
        assert all(len(op.calls) == 1 for op in ops)
        assert console.find("iOS build failed")
        assert not console.has_error()

    @pytest.mark.parametrize("failing", [set(), {0}, {1, 2}, {0, 1, 2}, {0, 2}])
    def test_exactly_the_failed_targets_are_listed(self, failing: set[int]) -> None:
        targets = [Target.IOS, Target.ANDROID, Target.WEB]
        ops = [FakeOperation(t, fail=i in failing) for i, t in enumerate(targets)]
        result = Orchestrator(MockConsole()).run(ops, kind="build", version=VERSION, build_number=1)

        expected = [targets[i].display_name for i in sorted(failing)]
        assert result.failed_targets == expected
        assert sum(r.succeeded for r in result.reports) == len(targets) - len(failing)
        assert result.succeeded == (not failing)

    def test_exceptions_become_operation_crashed(self) -> None:
        ops = [FakeOperation(Target.IOS, crash=True), FakeOperation(Target.WEB)]
        result = Orchestrator(MockConsole()).run(ops, kind="build")

        failure = result.reports[0].failure
        assert isinstance(failure, OperationCrashed)
        assert "keychain locked" in failure.message
        assert result.reports[1].succeeded

    def test_version_is_threaded_into_every_operation(self) -> None:
        ops = [FakeOperation(Target.ANDROID), FakeOperation(Target.WEB)]
        Orchestrator(MockConsole()).run(ops, kind="build", version=VERSION, build_number=1003002)
        assert [op.calls[0][:2] for op in ops] == [(VERSION, 1003002), (VERSION, 1003002)]


class TestUploadGating:
    """Uploads in the same run depend on their build."""

    def test_upload_skipped_when_build_failed(self) -> None:
        upload_ios = FakeOperation(Target.IOS, kind="upload", requires="build ios")
        upload_web = FakeOperation(Target.WEB, kind="upload", requires="build web")
        ops = [
            FakeOperation(Target.IOS, fail=True),
            FakeOperation(Target.WEB),
            upload_ios,
            upload_web,
        ]
        result = Orchestrator(MockConsole()).run(ops, kind="release")

        assert upload_ios.calls == []
        assert isinstance(result.reports[2].failure, BuildNotSucceeded)
        assert result.failed_targets == ["iOS"]
        # The upload receives the artifact of the build from the same run
        assert upload_web.calls[0][2] == Artifact(Target.WEB, Path("/out/web.bin"))

    def test_missing_prerequisite_counts_as_not_built(self) -> None:
        upload = FakeOperation(Target.ANDROID, kind="upload", requires="build android")
        result = Orchestrator(MockConsole()).run([upload], kind="upload")
        assert upload.calls == []
        assert result.failed_targets == ["Android"]


class TestStatesAndReports:
    """State machine and report timestamps."""

    def test_states(self) -> None:
        orchestrator = Orchestrator(MockConsole())
        assert orchestrator.state is PipelineState.NOT_STARTED

        orchestrator.run(
            [FakeOperation(Target.IOS, fail=True), FakeOperation(Target.WEB)], kind="build"
        )

        assert orchestrator.state is PipelineState.COMPLETED
        assert orchestrator.target_states == {
            "build ios": TargetState.FAILED,
            "build web": TargetState.SUCCEEDED,
        }

    def test_timestamps_come_from_clock(self) -> None:
        orchestrator = Orchestrator(MockConsole(), clock=_clock())
        result = orchestrator.run([FakeOperation(Target.IOS), FakeOperation(Target.WEB)], kind="build")

        first, second = result.reports
        assert first.started_at.tzinfo is UTC
        assert first.duration_seconds == 1.0
        assert second.started_at > first.finished_at

    def test_default_clock_is_utc(self) -> None:
        result = Orchestrator(MockConsole()).run([FakeOperation(Target.WEB)], kind="build")
        assert result.reports[0].started_at.utcoffset() == timedelta(0)


class TestExecute:
    """execute raises one aggregate error at the end."""

    def test_raises_naming_every_failed_target(self) -> None:
        ops = [
            FakeOperation(Target.IOS, fail=True),
            FakeOperation(Target.ANDROID, fail=True),
            FakeOperation(Target.WEB),
        ]
        with pytest.raises(PipelineFailed) as exc:
            Orchestrator(MockConsole()).execute(ops, kind="build")

        assert exc.value.failed_targets == ["iOS", "Android"]
        assert str(exc.value).startswith(
            "Build(s) for the following targets failed: [iOS Android]"
        )
        assert "build ios: flutter build failed (exit 1)" in str(exc.value)
        # The web build still ran
        assert ops[2].calls

    def test_returns_result_when_everything_succeeded(self) -> None:
        result = Orchestrator(MockConsole()).execute([FakeOperation(Target.WEB)], kind="upload")
        assert result.succeeded
        assert result.summary() == "Upload(s) succeeded for all targets"

    def test_on_complete_sees_result_before_raise(self) -> None:
        seen: list[PipelineResult] = []
        ops = [FakeOperation(Target.IOS, fail=True), FakeOperation(Target.WEB)]

        with pytest.raises(PipelineFailed) as exc:
            Orchestrator(MockConsole()).execute(ops, kind="build", on_complete=seen.append)

        assert seen == [exc.value.result]

    def test_on_complete_on_success(self) -> None:
        seen: list[PipelineResult] = []
        result = Orchestrator(MockConsole()).execute(
            [FakeOperation(Target.WEB)], kind="build", on_complete=seen.append
        )
        assert seen == [result]
