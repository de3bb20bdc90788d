"""Version sources.

A version source answers one question: which version of the app is
currently published (or tracked) there? Every source implements

    fetch(context) -> Result[SemanticVersion, SourceFailure]

and never raises: transport errors, auth errors, malformed payloads and
missing files all come back as SourceFailure.

The set of sources is closed:
- AppStoreSource: App Store Connect, highest across tvOS/iOS/macOS
- PlayStoreSource: Google Play track, highest decoded version code
- WebManifestSource: https://<reversed app id>/version.json
- LocalBuildSource: pubspec.yaml / VERSION in the Flutter project
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from ship.core.config import SourceName
from ship.core.credentials import CredentialStore
from ship.core.result import Err, Ok, Result
from ship.net.http import HttpClient
from ship.versioning.errors import SourceFailure
from ship.versioning.semver import SemanticVersion, decode_version_code, parse_version
from ship.versioning.stores import (
    ApplePlatform,
    AppStoreClient,
    AppStoreConnectClient,
    GooglePlayClient,
    PlayStoreClient,
)

__all__ = [
    "APPLE_PLATFORMS",
    "MANIFEST_PATH",
    "AppStoreSource",
    "LocalBuildSource",
    "PlayStoreSource",
    "SourceContext",
    "VersionQueryResult",
    "VersionSource",
    "WebManifestSource",
    "build_sources",
    "manifest_url",
]

APPLE_PLATFORMS: tuple[ApplePlatform, ...] = ("appletvos", "ios", "osx")
MANIFEST_PATH = "/version.json"

type VersionQueryResult = Result[SemanticVersion, SourceFailure]


@dataclass(frozen=True, slots=True)
class SourceContext:
    """What identifies the app being queried.

    Attributes:
        app_identifier: Bundle id / package name (e.g. com.example.app).
        live: Query production tracks instead of pre-production ones.
        credentials: Opaque per-backend credentials; never printed.
    """

    app_identifier: str
    live: bool = False
    credentials: CredentialStore = field(default_factory=CredentialStore)


class VersionSource(Protocol):
    @property
    def source_id(self) -> str: ...

    def fetch(self, context: SourceContext) -> VersionQueryResult: ...


def _highest(
    source_id: str,
    raw_versions: Iterable[str],
    *,
    empty_reason: str,
) -> VersionQueryResult:
    versions: set[SemanticVersion] = set()
    rejected: list[str] = []
    for raw in raw_versions:
        parsed = parse_version(raw)
        if isinstance(parsed, Err):
            rejected.append(parsed.error.message)
            continue
        versions.add(parsed.value)

    if versions:
        return Ok(max(versions))
    if rejected:
        return Err(SourceFailure(source_id, "; ".join(rejected)))
    return Err(SourceFailure(source_id, empty_reason))


class AppStoreSource:
    """Highest version across the Apple platform sub-tracks."""

    source_id = "app_store"

    def __init__(
        self,
        client: AppStoreClient,
        platforms: Sequence[ApplePlatform] = APPLE_PLATFORMS,
    ) -> None:
        self._client = client
        self._platforms = tuple(platforms)

    def fetch(self, context: SourceContext) -> VersionQueryResult:
        credentials = context.credentials.get("app_store")
        if credentials is None:
            return Err(SourceFailure(self.source_id, "no App Store Connect credentials"))

        found: list[str] = []
        for platform in self._platforms:
            result = self._client.latest_version(
                app_identifier=context.app_identifier,
                platform=platform,
                live=context.live,
                credentials=credentials,
            )
            if isinstance(result, Err):
                return Err(SourceFailure(self.source_id, f"{platform}: {result.error.message}"))
            if result.value is not None:
                found.append(result.value)

        return _highest(
            self.source_id,
            found,
            empty_reason=f"no versions found for {context.app_identifier}",
        )


class PlayStoreSource:
    """Highest decoded version code on the Google Play track."""

    source_id = "play_store"

    def __init__(self, client: PlayStoreClient) -> None:
        self._client = client

    @staticmethod
    def track_for(live: bool) -> str:
        return "production" if live else "internal"

    def fetch(self, context: SourceContext) -> VersionQueryResult:
        credentials = context.credentials.get("play_store")
        if credentials is None:
            return Err(SourceFailure(self.source_id, "no Google Play credentials"))

        track = self.track_for(context.live)
        result = self._client.track_version_codes(
            package_name=context.app_identifier,
            track=track,
            credentials=credentials,
        )
        if isinstance(result, Err):
            return Err(SourceFailure(self.source_id, result.error.message))

        versions: set[SemanticVersion] = set()
        for code in result.value:
            decoded = decode_version_code(code)
            if isinstance(decoded, Ok):
                versions.add(decoded.value)

        if not versions:
            return Err(
                SourceFailure(
                    self.source_id,
                    f"no versions found in the {track} track for {context.app_identifier}",
                )
            )
        return Ok(max(versions))


def manifest_url(app_identifier: str) -> str:
    """`com.example.app` -> `https://app.example.com/version.json`."""
    domain = ".".join(reversed(app_identifier.split(".")))
    return f"https://{domain}{MANIFEST_PATH}"


class WebManifestSource:
    """Version published in the web app's version.json."""

    source_id = "web"

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    def fetch(self, context: SourceContext) -> VersionQueryResult:
        url = manifest_url(context.app_identifier)
        credentials = context.credentials.get("web")
        headers = credentials.authorization_header() if credentials is not None else None

        result = self._http.get_json(url, headers=headers)
        if isinstance(result, Err):
            return Err(SourceFailure(self.source_id, str(result.error)))

        raw = result.value.get("version")
        if not isinstance(raw, str):
            return Err(SourceFailure(self.source_id, f"no version field in {url}"))
        parsed = parse_version(raw)
        if isinstance(parsed, Err):
            return Err(SourceFailure(self.source_id, parsed.error.message))
        return Ok(parsed.value)


_PUBSPEC_VERSION_RE = re.compile(r"^version:\s*[\"']?(?P<version>[^\s\"'+#]+)")


class LocalBuildSource:
    """Version tracked in the Flutter project itself.

    Reads `version:` from pubspec.yaml (the `+build` suffix is ignored),
    falling back to a plain VERSION file.
    """

    source_id = "local"

    def __init__(self, project_dir: Path) -> None:
        self._project_dir = project_dir

    def fetch(self, context: SourceContext) -> VersionQueryResult:
        pubspec = self._project_dir / "pubspec.yaml"
        version_file = self._project_dir / "VERSION"

        try:
            if pubspec.is_file():
                raw = _extract_pubspec_version(pubspec.read_text(encoding="utf-8"))
                if raw is None:
                    return Err(SourceFailure(self.source_id, f"no version in {pubspec}"))
            elif version_file.is_file():
                raw = version_file.read_text(encoding="utf-8").strip()
            else:
                return Err(SourceFailure(self.source_id, f"no pubspec.yaml or VERSION in {self._project_dir}"))
        except (OSError, UnicodeDecodeError) as e:
            return Err(SourceFailure(self.source_id, f"cannot read local version: {e}"))

        parsed = parse_version(raw)
        if isinstance(parsed, Err):
            return Err(SourceFailure(self.source_id, parsed.error.message))
        return Ok(parsed.value)


def _extract_pubspec_version(content: str) -> str | None:
    for line in content.splitlines():
        m = _PUBSPEC_VERSION_RE.match(line)
        if m:
            return m.group("version")
    return None


def build_sources(
    names: Sequence[SourceName],
    *,
    http: HttpClient,
    project_dir: Path,
) -> list[VersionSource]:
    """Instantiate the configured sources, in configured order."""
    sources: list[VersionSource] = []
    for name in names:
        match name:
            case "app_store":
                sources.append(AppStoreSource(AppStoreConnectClient(http)))
            case "play_store":
                sources.append(PlayStoreSource(GooglePlayClient(http)))
            case "web":
                sources.append(WebManifestSource(http))
            case "local":
                sources.append(LocalBuildSource(project_dir))
    return sources
