"""Subprocess execution with Result-based error handling.

This is the toolchain boundary: `flutter build`, upload commands and any
other external tool run through a CommandRunner. stdout and stderr are
captured as one combined text so the failure summary shows them in the
order the tool printed them.

Usage:
    result = run(["flutter", "--version"], cwd=Path("."))
    match result:
        case Ok(output):
            print(output)
        case Err(error):
            print(f"Failed: {error}")
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from ship.core.result import Err, Ok, Result

__all__ = [
    "CommandOutput",
    "CommandRunner",
    "ProcessError",
    "ScriptedRunner",
    "SubprocessRunner",
    "run",
]


@dataclass(frozen=True, slots=True)
class CommandOutput:
    """Outcome of one external invocation.

    Attributes:
        command: The argv that was executed.
        returncode: Exit code (-1 if the process could not start or timed out).
        output: Combined stdout+stderr text.
        timed_out: True if the timeout expired before the process exited.
    """

    command: tuple[str, ...]
    returncode: int
    output: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution."""

    command: tuple[str, ...]
    returncode: int
    output: str
    timed_out: bool = False

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        if self.timed_out:
            return f"{cmd_str} timed out"
        return f"{cmd_str} failed (exit {self.returncode})"


@runtime_checkable
class CommandRunner(Protocol):
    """Executes an external command and reports its combined output."""

    def execute(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandOutput: ...


class SubprocessRunner:
    """CommandRunner backed by subprocess.run."""

    def execute(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandOutput:
        argv = tuple(cmd)
        try:
            proc = subprocess.run(
                list(argv),
                cwd=str(cwd),
                env=dict(env) if env is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            partial = e.stdout if isinstance(e.stdout, str) else ""
            return CommandOutput(
                command=argv,
                returncode=-1,
                output=f"{partial}Command timed out after {timeout}s",
                timed_out=True,
            )
        except OSError as e:
            return CommandOutput(command=argv, returncode=-1, output=str(e))

        return CommandOutput(command=argv, returncode=proc.returncode, output=proc.stdout or "")


def run(
    cmd: Sequence[str],
    cwd: Path,
    *,
    timeout: float | None = None,
    runner: CommandRunner | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its output or a ProcessError.

    Any non-zero exit is a failure; the combined output is kept on the
    error for diagnostics.
    """
    out = (runner or SubprocessRunner()).execute(cmd, cwd=cwd, timeout=timeout)
    if not out.ok:
        return Err(
            ProcessError(
                command=out.command,
                returncode=out.returncode,
                output=out.output,
                timed_out=out.timed_out,
            )
        )
    return Ok(out.output)


def _empty_calls() -> list[tuple[tuple[str, ...], Path]]:
    return []


@dataclass
class ScriptedRunner:
    """CommandRunner returning canned outputs, for tests.

    Responses are matched on the first argv items; the longest matching
    prefix wins. Unmatched commands succeed with empty output.

    Usage:
        runner = ScriptedRunner()
        runner.respond(["flutter", "build", "ipa"], returncode=1, output="signing failed")
    """

    responses: dict[tuple[str, ...], tuple[int, str, bool]] = field(default_factory=dict)
    calls: list[tuple[tuple[str, ...], Path]] = field(default_factory=_empty_calls)

    def respond(
        self,
        prefix: Sequence[str],
        *,
        returncode: int = 0,
        output: str = "",
        timed_out: bool = False,
    ) -> None:
        self.responses[tuple(prefix)] = (returncode, output, timed_out)

    def execute(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandOutput:
        argv = tuple(cmd)
        self.calls.append((argv, cwd))
        best: tuple[str, ...] | None = None
        for prefix in self.responses:
            if argv[: len(prefix)] == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        if best is None:
            return CommandOutput(command=argv, returncode=0, output="")
        returncode, output, timed_out = self.responses[best]
        return CommandOutput(command=argv, returncode=returncode, output=output, timed_out=timed_out)
