"""Typed configuration loading and access.

This module provides dataclasses for the release.toml structure with
full type safety and validation. A minimal file looks like:

    [app]
    identifier = "com.example.app"

    [versions]
    sources = ["app_store", "play_store", "web"]
    live = false

    [upload]
    ios = ["xcrun", "altool", "--upload-app", "-t", "ios", "-f", "{artifact}"]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_int,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "Config",
    "AppConfig",
    "VersionsConfig",
    "BuildConfig",
    "UploadConfig",
    "CredentialsConfig",
    "ConfigError",
    "SourceName",
    "ALL_SOURCES",
    "DEFAULT_SOURCES",
    "ARTIFACT_PLACEHOLDER",
    "load_config",
]

SourceName = Literal["app_store", "play_store", "web", "local"]

ALL_SOURCES: tuple[SourceName, ...] = ("app_store", "play_store", "web", "local")
DEFAULT_SOURCES: tuple[SourceName, ...] = ("app_store", "play_store", "web")

ARTIFACT_PLACEHOLDER = "{artifact}"

_BUILD_TIMEOUT_SECONDS = 30 * 60
_UPLOAD_TIMEOUT_SECONDS = 30 * 60
_QUERY_TIMEOUT_SECONDS = 30


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded, parsed, or is incomplete."""

    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class AppConfig:
    """The app being released."""

    # Bundle id / package name; reversed it also gives the web domain.
    identifier: str | None = None
    # Flutter project directory, relative to release.toml.
    flutter_dir: str = "."


@dataclass(frozen=True, slots=True)
class VersionsConfig:
    """Which version sources are queried and how."""

    sources: tuple[SourceName, ...] = DEFAULT_SOURCES
    # live=True queries production tracks, otherwise pre-production ones.
    live: bool = False
    query_timeout_seconds: int = _QUERY_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class BuildConfig:
    flutter: str = "flutter"
    timeout_seconds: int = _BUILD_TIMEOUT_SECONDS
    ios_export_options: str = "./ios/ExportOptions.plist"


@dataclass(frozen=True, slots=True)
class UploadConfig:
    """Upload commands per target.

    Each command is an argv list; `{artifact}` is replaced with the
    absolute artifact path. An empty command means no uploader.
    """

    ios: tuple[str, ...] = ()
    android: tuple[str, ...] = ()
    web: tuple[str, ...] = ()
    timeout_seconds: int = _UPLOAD_TIMEOUT_SECONDS

    def command_for(self, target: str) -> tuple[str, ...]:
        match target:
            case "ios":
                return self.ios
            case "android":
                return self.android
            case "web":
                return self.web
            case _:
                return ()


@dataclass(frozen=True, slots=True)
class CredentialsConfig:
    """Names of the environment variables holding store credentials.

    Only variable names live in the config file, never the secrets.
    """

    app_store_env: str = "APP_STORE_CONNECT_TOKEN"
    play_store_env: str = "GOOGLE_PLAY_TOKEN"
    web_env: str = "WEB_MANIFEST_TOKEN"


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    app: AppConfig = field(default_factory=AppConfig)
    versions: VersionsConfig = field(default_factory=VersionsConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If a value has the right type but an invalid meaning.
        """
        app: StrDict = get_table(data, "app") or {}
        versions: StrDict = get_table(data, "versions") or {}
        build: StrDict = get_table(data, "build") or {}
        upload: StrDict = get_table(data, "upload") or {}
        credentials: StrDict = get_table(data, "credentials") or {}

        return cls(
            app=AppConfig(
                identifier=get_str(app, "identifier"),
                flutter_dir=get_str(app, "flutter_dir") or ".",
            ),
            versions=VersionsConfig(
                sources=_parse_sources(versions),
                live=bool(get_bool(versions, "live")),
                query_timeout_seconds=get_int(versions, "query_timeout_seconds")
                or _QUERY_TIMEOUT_SECONDS,
            ),
            build=BuildConfig(
                flutter=get_str(build, "flutter") or "flutter",
                timeout_seconds=get_int(build, "timeout_seconds") or _BUILD_TIMEOUT_SECONDS,
                ios_export_options=get_str(build, "ios_export_options")
                or "./ios/ExportOptions.plist",
            ),
            upload=UploadConfig(
                ios=tuple(get_str_list(upload, "ios") or ()),
                android=tuple(get_str_list(upload, "android") or ()),
                web=tuple(get_str_list(upload, "web") or ()),
                timeout_seconds=get_int(upload, "timeout_seconds") or _UPLOAD_TIMEOUT_SECONDS,
            ),
            credentials=CredentialsConfig(
                app_store_env=get_str(credentials, "app_store_env") or "APP_STORE_CONNECT_TOKEN",
                play_store_env=get_str(credentials, "play_store_env") or "GOOGLE_PLAY_TOKEN",
                web_env=get_str(credentials, "web_env") or "WEB_MANIFEST_TOKEN",
            ),
        )

    def with_environment(self, env: Mapping[str, str]) -> Config:
        """Apply environment overrides (APP_IDENTIFIER)."""
        identifier = env.get("APP_IDENTIFIER", "").strip()
        if not identifier:
            return self
        return replace(self, app=replace(self.app, identifier=identifier))

    def require_app_identifier(self) -> Result[str, ConfigError]:
        if self.app.identifier:
            return Ok(self.app.identifier)
        return Err(
            ConfigError(
                "missing app identifier",
                hint="Set [app].identifier in release.toml or export APP_IDENTIFIER.",
            )
        )


def _parse_sources(versions: Mapping[str, object]) -> tuple[SourceName, ...]:
    if "sources" not in versions:
        return DEFAULT_SOURCES
    names = get_str_list(versions, "sources")
    if names is None:
        raise ValueError("[versions].sources must be a list of strings")

    out: list[SourceName] = []
    for name in names:
        match name:
            case "app_store" | "play_store" | "web" | "local":
                if name not in out:
                    out.append(name)
            case _:
                raise ValueError(
                    f"unknown version source '{name}' (expected one of {', '.join(ALL_SOURCES)})"
                )
    return tuple(out)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to release.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))

