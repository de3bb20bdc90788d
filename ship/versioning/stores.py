"""Store API boundaries.

Only the two read calls the version sources need are modelled:
- App Store Connect: latest version string of an app per Apple platform
- Google Play Developer API: version codes of the releases on a track

Credentials are bearer tokens minted elsewhere (JWT for App Store Connect,
OAuth access token for Google Play) and passed through opaquely.
"""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from ship.core.credentials import Credentials
from ship.core.result import Err, Ok, Result
from ship.core.structured import as_obj_list, as_str_dict, get_str, get_table
from ship.net.http import HttpClient, HttpError

__all__ = [
    "ApplePlatform",
    "AppStoreClient",
    "AppStoreConnectClient",
    "GooglePlayClient",
    "PlayStoreClient",
    "StoreError",
]

ApplePlatform = Literal["appletvos", "ios", "osx"]

# App Store Connect platform enum values
_ASC_PLATFORMS: dict[ApplePlatform, str] = {
    "appletvos": "TV_OS",
    "ios": "IOS",
    "osx": "MAC_OS",
}


@dataclass(frozen=True, slots=True)
class StoreError:
    kind: Literal["auth", "transport", "not_found", "protocol"]
    message: str

    def __str__(self) -> str:
        return self.message


def _from_http(error: HttpError) -> StoreError:
    if error.is_auth_error:
        return StoreError(kind="auth", message=f"authentication rejected ({error})")
    return StoreError(kind="transport", message=str(error))


class AppStoreClient(Protocol):
    def latest_version(
        self,
        *,
        app_identifier: str,
        platform: ApplePlatform,
        live: bool,
        credentials: Credentials,
    ) -> Result[str | None, StoreError]:
        """Latest version string on the platform, or None if there is none."""
        ...


class PlayStoreClient(Protocol):
    def track_version_codes(
        self,
        *,
        package_name: str,
        track: str,
        credentials: Credentials,
    ) -> Result[list[str], StoreError]:
        """Version codes of every release on the track."""
        ...


def _first_attributes(payload: dict[str, Any]) -> dict[str, object] | None:
    data = as_obj_list(payload.get("data"))
    if not data:
        return None
    first = as_str_dict(data[0])
    if first is None:
        return None
    return get_table(first, "attributes")


class AppStoreConnectClient:
    """App Store Connect REST client (read-only)."""

    def __init__(self, http: HttpClient, base_url: str = "https://api.appstoreconnect.apple.com") -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._app_ids: dict[str, str] = {}

    def _get(self, path: str, query: dict[str, str], credentials: Credentials) -> Result[dict[str, Any], StoreError]:
        url = f"{self._base_url}{path}?{urllib.parse.urlencode(query)}"
        result = self._http.get_json(url, headers=credentials.authorization_header())
        if isinstance(result, Err):
            return Err(_from_http(result.error))
        return Ok(result.value)

    def _app_id(self, app_identifier: str, credentials: Credentials) -> Result[str, StoreError]:
        cached = self._app_ids.get(app_identifier)
        if cached is not None:
            return Ok(cached)

        result = self._get("/v1/apps", {"filter[bundleId]": app_identifier, "limit": "1"}, credentials)
        if isinstance(result, Err):
            return result
        data = as_obj_list(result.value.get("data"))
        first = as_str_dict(data[0]) if data else None
        app_id = get_str(first, "id") if first is not None else None
        if app_id is None:
            return Err(StoreError(kind="not_found", message=f"no app with bundle id {app_identifier}"))
        self._app_ids[app_identifier] = app_id
        return Ok(app_id)

    def latest_version(
        self,
        *,
        app_identifier: str,
        platform: ApplePlatform,
        live: bool,
        credentials: Credentials,
    ) -> Result[str | None, StoreError]:
        app_id = self._app_id(app_identifier, credentials)
        if isinstance(app_id, Err):
            return app_id

        asc_platform = _ASC_PLATFORMS[platform]
        if live:
            path = f"/v1/apps/{app_id.value}/appStoreVersions"
            query = {
                "filter[platform]": asc_platform,
                "filter[appStoreState]": "READY_FOR_SALE",
                "limit": "1",
            }
            field_name = "versionString"
        else:
            path = "/v1/preReleaseVersions"
            query = {
                "filter[app]": app_id.value,
                "filter[platform]": asc_platform,
                "sort": "-version",
                "limit": "1",
            }
            field_name = "version"

        result = self._get(path, query, credentials)
        if isinstance(result, Err):
            return result
        attributes = _first_attributes(result.value)
        if attributes is None:
            return Ok(None)
        return Ok(get_str(attributes, field_name))


class GooglePlayClient:
    """Google Play Developer API client (read-only use of an edit)."""

    def __init__(
        self,
        http: HttpClient,
        base_url: str = "https://androidpublisher.googleapis.com/androidpublisher/v3",
    ) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")

    def track_version_codes(
        self,
        *,
        package_name: str,
        track: str,
        credentials: Credentials,
    ) -> Result[list[str], StoreError]:
        headers = credentials.authorization_header()
        app_url = f"{self._base_url}/applications/{urllib.parse.quote(package_name)}"

        edit = self._http.post_json(f"{app_url}/edits", headers=headers)
        if isinstance(edit, Err):
            return Err(_from_http(edit.error))
        edit_id = get_str(edit.value, "id")
        if edit_id is None:
            return Err(StoreError(kind="protocol", message="edit response has no id"))

        track_url = f"{app_url}/edits/{urllib.parse.quote(edit_id)}/tracks/{urllib.parse.quote(track)}"
        info = self._http.get_json(track_url, headers=headers)
        if isinstance(info, Err):
            return Err(_from_http(info.error))

        codes: list[str] = []
        for release_obj in as_obj_list(info.value.get("releases")) or []:
            release = as_str_dict(release_obj)
            if release is None:
                continue
            for code in as_obj_list(release.get("versionCodes")) or []:
                # int64 values are serialized as strings by the API
                if isinstance(code, (str, int)) and not isinstance(code, bool):
                    codes.append(str(code))
        return Ok(codes)
