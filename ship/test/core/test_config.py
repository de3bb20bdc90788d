"""Tests for ship.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from ship.core.config import (
    DEFAULT_SOURCES,
    BuildConfig,
    Config,
    ConfigError,
    UploadConfig,
    VersionsConfig,
    load_config,
)
from ship.core.result import Err, Ok


class TestDefaults:
    """Test dataclass defaults."""

    def test_versions_defaults(self) -> None:
        config = VersionsConfig()
        assert config.sources == DEFAULT_SOURCES
        assert config.live is False
        assert config.query_timeout_seconds == 30

    def test_build_defaults(self) -> None:
        config = BuildConfig()
        assert config.flutter == "flutter"
        assert config.ios_export_options == "./ios/ExportOptions.plist"

    def test_upload_command_for(self) -> None:
        config = UploadConfig(ios=("xcrun", "altool"), web=())
        assert config.command_for("ios") == ("xcrun", "altool")
        assert config.command_for("web") == ()
        assert config.command_for("tvos") == ()

    def test_frozen(self) -> None:
        config = Config()
        with pytest.raises(AttributeError):
            config.app = None  # type: ignore[misc,assignment]


class TestFromDict:
    """Test Config.from_dict."""

    def test_empty(self) -> None:
        config = Config.from_dict({})
        assert config.app.identifier is None
        assert config.app.flutter_dir == "."
        assert config.versions.sources == DEFAULT_SOURCES

    def test_full(self) -> None:
        config = Config.from_dict(
            {
                "app": {"identifier": "com.example.app", "flutter_dir": "mobile"},
                "versions": {"sources": ["web", "local"], "live": True},
                "build": {"flutter": "fvm", "timeout_seconds": 60},
                "upload": {"android": ["play-upload", "--aab", "{artifact}"]},
                "credentials": {"play_store_env": "PLAY_TOKEN"},
            }
        )
        assert config.app.identifier == "com.example.app"
        assert config.app.flutter_dir == "mobile"
        assert config.versions.sources == ("web", "local")
        assert config.versions.live is True
        assert config.build.flutter == "fvm"
        assert config.build.timeout_seconds == 60
        assert config.upload.android == ("play-upload", "--aab", "{artifact}")
        assert config.credentials.play_store_env == "PLAY_TOKEN"
        assert config.credentials.app_store_env == "APP_STORE_CONNECT_TOKEN"

    def test_duplicate_sources_collapse(self) -> None:
        config = Config.from_dict({"versions": {"sources": ["web", "web", "local"]}})
        assert config.versions.sources == ("web", "local")

    def test_unknown_source_rejected(self) -> None:
        with pytest.raises(ValueError, match="unknown version source 'testflight'"):
            Config.from_dict({"versions": {"sources": ["testflight"]}})


class TestEnvironment:
    """Test environment overrides and required values."""

    def test_app_identifier_override(self) -> None:
        config = Config.from_dict({"app": {"identifier": "com.example.app"}})
        overridden = config.with_environment({"APP_IDENTIFIER": "com.example.other"})
        assert overridden.app.identifier == "com.example.other"

    def test_blank_override_ignored(self) -> None:
        config = Config.from_dict({"app": {"identifier": "com.example.app"}})
        assert config.with_environment({"APP_IDENTIFIER": "  "}) is config

    def test_require_app_identifier(self) -> None:
        assert Config.from_dict({"app": {"identifier": "com.example.app"}}).require_app_identifier() == Ok(
            "com.example.app"
        )
        result = Config().require_app_identifier()
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert result.error.hint is not None
        assert "APP_IDENTIFIER" in result.error.hint


class TestLoadConfig:
    """Test load_config against files."""

    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "release.toml"
        path.write_text(
            '[app]\nidentifier = "com.example.app"\n\n[versions]\nsources = ["web"]\n',
            encoding="utf-8",
        )
        result = load_config(path)
        assert isinstance(result, Ok)
        assert result.value.app.identifier == "com.example.app"
        assert result.value.versions.sources == ("web",)

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "release.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "release.toml"
        path.write_text("[app\nidentifier = ", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / "release.toml"
        path.write_text('[versions]\nsources = ["nope"]\n', encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message
