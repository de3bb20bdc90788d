"""Version resolution: semantic versions, version sources and the resolver."""

from .errors import BuildNumberError, ParseError, SourceFailure
from .resolver import ResolvedVersion, VersionResolver
from .semver import (
    SemanticVersion,
    baseline,
    build_number,
    compare,
    decode_version_code,
    encode_version_code,
    parse_version,
)
from .sources import (
    AppStoreSource,
    LocalBuildSource,
    PlayStoreSource,
    SourceContext,
    VersionSource,
    WebManifestSource,
    build_sources,
    manifest_url,
)

__all__ = [
    "AppStoreSource",
    "BuildNumberError",
    "LocalBuildSource",
    "ParseError",
    "PlayStoreSource",
    "ResolvedVersion",
    "SemanticVersion",
    "SourceContext",
    "SourceFailure",
    "VersionResolver",
    "VersionSource",
    "WebManifestSource",
    "baseline",
    "build_number",
    "build_sources",
    "compare",
    "decode_version_code",
    "encode_version_code",
    "manifest_url",
    "parse_version",
]
