"""Sequential, continue-on-error execution of target operations.

Operations run one after another in the order given: they share the
Flutter project directory, the signing keychain and the build output
layout, so they are never run concurrently. A failing operation is
recorded and the loop moves on; the verdict is only decided once every
operation has had its turn.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from ship.core.result import Err, Ok
from ship.output.console import ConsoleProtocol, Style
from ship.pipeline.model import (
    Artifact,
    BuildNotSucceeded,
    OperationCrashed,
    Outcome,
    PipelineFailed,
    PipelineResult,
    PipelineState,
    TargetReport,
    TargetState,
)
from ship.pipeline.operations import TargetOperation
from ship.versioning.semver import SemanticVersion

__all__ = ["Clock", "Orchestrator"]

type Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Orchestrator:
    """Runs target operations and aggregates their reports."""

    def __init__(self, console: ConsoleProtocol, *, clock: Clock | None = None) -> None:
        self._console = console
        self._clock = clock or _utcnow
        self.state = PipelineState.NOT_STARTED
        self.target_states: dict[str, TargetState] = {}

    def run(
        self,
        operations: Sequence[TargetOperation],
        *,
        kind: str,
        version: SemanticVersion | None = None,
        build_number: int | None = None,
    ) -> PipelineResult:
        """Run every operation and return the result. Never raises for a failed target."""
        self.state = PipelineState.IN_PROGRESS
        self.target_states = {op.name: TargetState.PENDING for op in operations}

        reports: list[TargetReport] = []
        produced: dict[str, Artifact] = {}

        for op in operations:
            self.target_states[op.name] = TargetState.RUNNING
            self._console.step(op.name)
            started = self._clock()

            outcome: Outcome
            if op.requires is not None and op.requires not in produced:
                outcome = Err(BuildNotSucceeded(op.target))
            else:
                upstream = produced.get(op.requires) if op.requires is not None else None
                try:
                    outcome = op.run(version, build_number, artifact=upstream)
                except Exception as e:  # noqa: BLE001
                    outcome = Err(OperationCrashed(f"{type(e).__name__}: {e}"))

            report = TargetReport(
                name=op.name,
                target=op.target,
                kind=op.kind,
                outcome=outcome,
                started_at=started,
                finished_at=self._clock(),
            )
            reports.append(report)

            match outcome:
                case Ok(artifact):
                    produced[op.name] = artifact
                    self.target_states[op.name] = TargetState.SUCCEEDED
                    self._console.success(f"{op.name}: {artifact.path}")
                case Err(failure):
                    self.target_states[op.name] = TargetState.FAILED
                    self._console.print(
                        f"{op.target.display_name} {op.kind} failed: {failure.message}", Style.DIM
                    )

        self.state = PipelineState.COMPLETED
        return PipelineResult(
            kind=kind,
            reports=tuple(reports),
            version=str(version) if version is not None else None,
            build_number=build_number,
        )

    def execute(
        self,
        operations: Sequence[TargetOperation],
        *,
        kind: str,
        version: SemanticVersion | None = None,
        build_number: int | None = None,
        on_complete: Callable[[PipelineResult], None] | None = None,
    ) -> PipelineResult:
        """Run every operation, then raise PipelineFailed if any of them failed.

        `on_complete` sees the finished result before the verdict is raised.
        """
        result = self.run(operations, kind=kind, version=version, build_number=build_number)
        if on_complete is not None:
            on_complete(result)
        if not result.succeeded:
            raise PipelineFailed(result)
        return result
