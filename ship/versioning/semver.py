"""Dotted numeric versions, version codes and build numbers.

Versions here are plain dotted integers of any arity (`1.2`, `1.2.3`,
`2024.1.0.7`). Missing trailing components compare as zero, so `1.2`
and `1.2.0` are the same version.

Two integer encodings are used by the stores:
- Play Console version codes: up to 9 digits, read as three 3-digit
  groups (`1002003` -> `1.2.3`).
- Build numbers passed to `flutter build`: each of major/minor/patch
  zero-padded to 3 digits (`1.2.3` -> `1002003`).
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

from ship.core.result import Err, Ok, Result
from ship.versioning.errors import BuildNumberError, ParseError

__all__ = [
    "SemanticVersion",
    "baseline",
    "build_number",
    "compare",
    "decode_version_code",
    "encode_version_code",
    "parse_version",
]

_COMPONENT_RE = re.compile(r"[0-9]+")

_GROUP_WIDTH = 3
_GROUP_MAX = 10**_GROUP_WIDTH - 1
_CODE_WIDTH = 9
_BUILD_NUMBER_ARITY = 3


@functools.total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class SemanticVersion:
    """Immutable dotted numeric version.

    Use `parse_version` (Result) or `SemanticVersion.parse` (raises) to
    build one from text.
    """

    components: tuple[int, ...]

    def __post_init__(self) -> None:
        if not self.components:
            raise ValueError("a version needs at least one component")
        if any(c < 0 for c in self.components):
            raise ValueError(f"negative version component in {self.components}")

    @classmethod
    def of(cls, *components: int) -> SemanticVersion:
        return cls(tuple(components))

    @classmethod
    def parse(cls, text: str) -> SemanticVersion:
        """Parse text, raising ValueError on malformed input."""
        result = parse_version(text)
        if isinstance(result, Err):
            raise ValueError(result.error.message)
        return result.value

    def _key(self) -> tuple[int, ...]:
        # Trailing zeros are insignificant for ordering, equality and hashing.
        comps = list(self.components)
        while len(comps) > 1 and comps[-1] == 0:
            comps.pop()
        return tuple(comps)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) == 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare(self, other) < 0

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return ".".join(str(c) for c in self.components)

    def __repr__(self) -> str:
        return f"SemanticVersion('{self}')"

    def padded(self, arity: int) -> tuple[int, ...]:
        """Components right-padded with zeros to at least `arity`."""
        missing = arity - len(self.components)
        return self.components + (0,) * max(missing, 0)

    def bump_patch(self) -> SemanticVersion:
        """Next patch release: `1.2.3` -> `1.2.4`, `1.2` -> `1.2.1`.

        Components after the patch are dropped: `1.2.3.9` -> `1.2.4`.
        """
        major, minor, patch = self.padded(3)[:3]
        return SemanticVersion((major, minor, patch + 1))

    @property
    def is_zero(self) -> bool:
        return all(c == 0 for c in self.components)


def parse_version(text: str) -> Result[SemanticVersion, ParseError]:
    """Parse a dotted numeric version.

    Surrounding whitespace is ignored. Every dot-separated component must
    be a base-10 ASCII integer; signs, empty components and suffixes such
    as `-beta` are rejected.
    """
    stripped = text.strip()
    if not stripped:
        return Err(ParseError(kind="empty", text=text))

    parts = stripped.split(".")
    if not all(_COMPONENT_RE.fullmatch(p) for p in parts):
        return Err(ParseError(kind="not_numeric", text=text))
    return Ok(SemanticVersion(tuple(int(p) for p in parts)))


def compare(a: SemanticVersion, b: SemanticVersion) -> int:
    """Three-way comparison: -1, 0 or 1.

    The shorter version is padded with zeros, then components are compared
    left to right; the first difference decides.
    """
    width = max(len(a.components), len(b.components))
    for x, y in zip(a.padded(width), b.padded(width)):
        if x != y:
            return -1 if x < y else 1
    return 0


def baseline() -> SemanticVersion:
    """The version used when nothing authoritative is known: 0.0.0."""
    return SemanticVersion((0, 0, 0))


def decode_version_code(code: int | str) -> Result[SemanticVersion, ParseError]:
    """Decode a Play Console version code into a dotted version.

    The code is left-padded to 9 digits and split into 3-digit groups;
    leading zero groups are dropped (at least one component is kept):
    `"000001002"` -> `1.2`, `1002003` -> `1.2.3`, `0` -> `0`.
    """
    text = str(code).strip()
    if not text:
        return Err(ParseError(kind="empty", text=text))
    if not _COMPONENT_RE.fullmatch(text):
        return Err(ParseError(kind="not_numeric", text=text))
    if len(text) > _CODE_WIDTH:
        return Err(ParseError(kind="out_of_range", text=text))

    digits = text.rjust(_CODE_WIDTH, "0")
    groups = [int(digits[i : i + _GROUP_WIDTH]) for i in range(0, _CODE_WIDTH, _GROUP_WIDTH)]
    while len(groups) > 1 and groups[0] == 0:
        groups.pop(0)
    return Ok(SemanticVersion(tuple(groups)))


def encode_version_code(version: SemanticVersion) -> Result[str, BuildNumberError]:
    """Inverse of decode_version_code: 3-digit groups, left-padded to 9 digits."""
    if any(c > _GROUP_MAX for c in version.components):
        return Err(BuildNumberError(str(version), f"component above {_GROUP_MAX}"))
    digits = "".join(str(c).rjust(_GROUP_WIDTH, "0") for c in version.components)
    if len(digits) > _CODE_WIDTH:
        return Err(BuildNumberError(str(version), f"more than {_CODE_WIDTH} digits"))
    return Ok(digits.rjust(_CODE_WIDTH, "0"))


def build_number(version: SemanticVersion) -> Result[int, BuildNumberError]:
    """Derive the monotonic build number passed to `flutter build`.

    major/minor/patch are zero-padded to 3 digits each and concatenated:
    `1.2.3` -> `001002003` -> 1002003, `1.2` -> 1002000.

    Trailing zero components are ignored (`1.2.4.0` -> 1002004). Versions
    with more significant components, or a component above 999, are
    rejected: either would break build-number monotonicity.
    """
    significant = version._key()
    if len(significant) > _BUILD_NUMBER_ARITY:
        return Err(
            BuildNumberError(str(version), f"more than {_BUILD_NUMBER_ARITY} components")
        )
    if any(c > _GROUP_MAX for c in version.components):
        return Err(BuildNumberError(str(version), f"component above {_GROUP_MAX}"))
    padded = significant + (0,) * (_BUILD_NUMBER_ARITY - len(significant))
    digits = "".join(str(c).rjust(_GROUP_WIDTH, "0") for c in padded)
    return Ok(int(digits))
