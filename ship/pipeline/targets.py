"""Release targets and how Flutter builds each of them."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath

__all__ = ["Target", "TargetLayout", "layout_for", "ordered"]


class Target(Enum):
    """A platform the app is released to. Declaration order is run order."""

    IOS = "ios"
    ANDROID = "android"
    WEB = "web"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    def __str__(self) -> str:
        return self.value


_DISPLAY_NAMES = {
    Target.IOS: "iOS",
    Target.ANDROID: "Android",
    Target.WEB: "Web",
}


@dataclass(frozen=True, slots=True)
class TargetLayout:
    """Where `flutter build <artifact_kind>` leaves its output.

    Attributes:
        artifact_kind: The `flutter build` subcommand.
        output_dir: Output directory, relative to the Flutter build dir.
        pattern: Glob matching the artifact inside output_dir.
    """

    artifact_kind: str
    output_dir: PurePosixPath
    pattern: str


_LAYOUTS = {
    Target.IOS: TargetLayout("ipa", PurePosixPath("ios/ipa"), "*.ipa"),
    Target.ANDROID: TargetLayout("appbundle", PurePosixPath("app/outputs/bundle/release"), "*.aab"),
    # The web "artifact" is the bundle's entry point; uploaders get its directory.
    Target.WEB: TargetLayout("web", PurePosixPath("web"), "index.html"),
}


def layout_for(target: Target) -> TargetLayout:
    return _LAYOUTS[target]


def ordered(targets: Iterable[Target]) -> list[Target]:
    """Deduplicate targets and sort them in declaration order."""
    wanted = set(targets)
    return [t for t in Target if t in wanted]
