"""Platform boundaries: subprocesses and the filesystem."""

from .files import atomic_write_text, find_latest
from .process import (
    CommandOutput,
    CommandRunner,
    ProcessError,
    ScriptedRunner,
    SubprocessRunner,
    run,
)

__all__ = [
    "CommandOutput",
    "CommandRunner",
    "ProcessError",
    "ScriptedRunner",
    "SubprocessRunner",
    "atomic_write_text",
    "find_latest",
    "run",
]
