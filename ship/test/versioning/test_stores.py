"""Tests for ship.versioning.stores module."""

from __future__ import annotations

import urllib.parse

from ship.core.credentials import Credentials
from ship.core.result import Err, Ok
from ship.net.http import HttpError, MockHttpClient
from ship.versioning.stores import AppStoreConnectClient, GooglePlayClient

ASC = "https://asc.test"
PLAY = "https://play.test/v3"
CREDS = Credentials("app_store", "jwt")


def _url(base: str, path: str, query: dict[str, str]) -> str:
    return f"{base}{path}?{urllib.parse.urlencode(query)}"


def _apps_url() -> str:
    return _url(ASC, "/v1/apps", {"filter[bundleId]": "com.example.app", "limit": "1"})


class TestAppStoreConnectClient:
    """App Store Connect queries."""

    def _client(self) -> tuple[AppStoreConnectClient, MockHttpClient]:
        http = MockHttpClient()
        http.set_json(_apps_url(), {"data": [{"id": "42", "type": "apps"}]})
        return AppStoreConnectClient(http, base_url=ASC), http

    def test_prerelease_version(self) -> None:
        client, http = self._client()
        http.set_json(
            _url(
                ASC,
                "/v1/preReleaseVersions",
                {"filter[app]": "42", "filter[platform]": "IOS", "sort": "-version", "limit": "1"},
            ),
            {"data": [{"attributes": {"version": "1.3.0", "platform": "IOS"}}]},
        )
        result = client.latest_version(
            app_identifier="com.example.app", platform="ios", live=False, credentials=CREDS
        )
        assert result == Ok("1.3.0")
        assert http.headers[0] == {"Authorization": "Bearer jwt"}

    def test_live_version(self) -> None:
        client, http = self._client()
        http.set_json(
            _url(
                ASC,
                "/v1/apps/42/appStoreVersions",
                {"filter[platform]": "TV_OS", "filter[appStoreState]": "READY_FOR_SALE", "limit": "1"},
            ),
            {"data": [{"attributes": {"versionString": "1.2.9"}}]},
        )
        result = client.latest_version(
            app_identifier="com.example.app", platform="appletvos", live=True, credentials=CREDS
        )
        assert result == Ok("1.2.9")

    def test_no_versions_is_none(self) -> None:
        client, http = self._client()
        http.set_json(
            _url(
                ASC,
                "/v1/preReleaseVersions",
                {"filter[app]": "42", "filter[platform]": "MAC_OS", "sort": "-version", "limit": "1"},
            ),
            {"data": []},
        )
        result = client.latest_version(
            app_identifier="com.example.app", platform="osx", live=False, credentials=CREDS
        )
        assert result == Ok(None)

    def test_app_id_is_cached(self) -> None:
        client, http = self._client()
        for _ in range(2):
            client.latest_version(
                app_identifier="com.example.app", platform="ios", live=False, credentials=CREDS
            )
        assert http.calls.count(("GET", _apps_url())) == 1

    def test_unknown_app(self) -> None:
        http = MockHttpClient()
        http.set_json(_apps_url(), {"data": []})
        result = AppStoreConnectClient(http, base_url=ASC).latest_version(
            app_identifier="com.example.app", platform="ios", live=False, credentials=CREDS
        )
        assert isinstance(result, Err)
        assert result.error.kind == "not_found"

    def test_auth_error(self) -> None:
        http = MockHttpClient()
        http.set_json(_apps_url(), HttpError(url=_apps_url(), status=401, message="Unauthorized"))
        result = AppStoreConnectClient(http, base_url=ASC).latest_version(
            app_identifier="com.example.app", platform="ios", live=False, credentials=CREDS
        )
        assert isinstance(result, Err)
        assert result.error.kind == "auth"
        assert "jwt" not in result.error.message


class TestGooglePlayClient:
    """Google Play track queries."""

    APP = f"{PLAY}/applications/com.example.app"

    def test_collects_version_codes(self) -> None:
        http = MockHttpClient()
        http.set_post(f"{self.APP}/edits", {"id": "edit-1"})
        http.set_json(
            f"{self.APP}/edits/edit-1/tracks/internal",
            {
                "track": "internal",
                "releases": [
                    {"status": "completed", "versionCodes": ["1002003"]},
                    {"status": "draft", "versionCodes": [1003000, True]},
                    {"status": "halted"},
                ],
            },
        )
        result = GooglePlayClient(http, base_url=PLAY).track_version_codes(
            package_name="com.example.app", track="internal", credentials=CREDS
        )
        assert result == Ok(["1002003", "1003000"])
        assert http.calls[0] == ("POST", f"{self.APP}/edits")

    def test_edit_without_id(self) -> None:
        http = MockHttpClient()
        http.set_post(f"{self.APP}/edits", {})
        result = GooglePlayClient(http, base_url=PLAY).track_version_codes(
            package_name="com.example.app", track="production", credentials=CREDS
        )
        assert isinstance(result, Err)
        assert result.error.kind == "protocol"

    def test_forbidden(self) -> None:
        http = MockHttpClient()
        http.set_post(f"{self.APP}/edits", HttpError(url=f"{self.APP}/edits", status=403, message="Forbidden"))
        result = GooglePlayClient(http, base_url=PLAY).track_version_codes(
            package_name="com.example.app", track="production", credentials=CREDS
        )
        assert isinstance(result, Err)
        assert result.error.kind == "auth"
