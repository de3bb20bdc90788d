from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class ParseError:
    """A version string or version code could not be parsed."""

    kind: Literal["empty", "not_numeric", "out_of_range"]
    text: str

    @property
    def message(self) -> str:
        match self.kind:
            case "empty":
                return "empty version string"
            case "not_numeric":
                return f"not a dotted numeric version: {self.text!r}"
            case "out_of_range":
                return f"version code out of range: {self.text!r}"

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class BuildNumberError:
    """A version cannot be encoded as a monotonic build number."""

    version: str
    reason: str

    @property
    def message(self) -> str:
        return f"cannot derive build number from {self.version}: {self.reason}"

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class SourceFailure:
    """A version source could not produce a version.

    `reason` is safe to print: sources never put credentials in it.
    """

    source_id: str
    reason: str

    @property
    def message(self) -> str:
        return f"{self.source_id}: {self.reason}"

    def __str__(self) -> str:
        return self.message
