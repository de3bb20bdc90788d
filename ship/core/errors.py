"""Error codes for CLI exit status.

These values are the process exit codes of the `ship` command and should
remain stable, CI jobs branch on them:
- 0: Success
- 1: User error (bad flags, malformed --version)
- 2: Configuration error (missing identifier, credential or config file)
- 3: Pipeline error (one or more targets failed)
- 4: Network error (every version source unreachable)
- 5: I/O error (report or output directory not writable)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    PIPELINE_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
