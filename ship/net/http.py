"""HTTP client abstraction for store APIs and web manifests.

This module provides:
- HttpClient: Protocol for JSON-over-HTTPS requests (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, cast, runtime_checkable

from ship import __version__
from ship.core.result import Err, Ok, Result
from ship.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network and decode errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    @property
    def is_auth_error(self) -> bool:
        return self.status in (401, 403)

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for JSON requests.

    Headers may carry credentials; implementations must never include
    them in errors.
    """

    def get_json(
        self, url: str, *, headers: Mapping[str, str] | None = None
    ) -> Result[dict[str, Any], HttpError]: ...

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object] | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Result[dict[str, Any], HttpError]: ...


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - JSON encoding/decoding
    - Timeout handling
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = f"ship/{__version__}") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _request(
        self,
        url: str,
        *,
        method: str,
        body: bytes | None,
        headers: Mapping[str, str] | None,
    ) -> Result[bytes, HttpError]:
        all_headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if body is not None:
            all_headers["Content-Type"] = "application/json"
        if headers:
            all_headers.update(headers)

        try:
            req = urllib.request.Request(url, data=body, headers=all_headers, method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def _decode(self, url: str, raw: bytes) -> Result[dict[str, Any], HttpError]:
        try:
            data_obj: object = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(HttpError(url=url, status=0, message="Expected JSON object"))
        return Ok(cast(dict[str, Any], data))

    def get_json(
        self, url: str, *, headers: Mapping[str, str] | None = None
    ) -> Result[dict[str, Any], HttpError]:
        result = self._request(url, method="GET", body=None, headers=headers)
        if isinstance(result, Err):
            return result
        return self._decode(url, result.value)

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object] | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        body = json.dumps(dict(payload or {})).encode("utf-8")
        result = self._request(url, method="POST", body=body, headers=headers)
        if isinstance(result, Err):
            return result
        return self._decode(url, result.value)


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_json("https://app.example.com/version.json", {"version": "1.2.3"})
        result = client.get_json("https://app.example.com/version.json")
        assert result == Ok({"version": "1.2.3"})
    """

    def __init__(self) -> None:
        self._get_responses: dict[str, dict[str, Any] | HttpError] = {}
        self._post_responses: dict[str, dict[str, Any] | HttpError] = {}
        self.calls: list[tuple[str, str]] = []
        self.headers: list[dict[str, str]] = []

    def set_json(self, url: str, response: dict[str, Any] | HttpError) -> None:
        self._get_responses[url] = response

    def set_post(self, url: str, response: dict[str, Any] | HttpError) -> None:
        self._post_responses[url] = response

    def _respond(
        self,
        responses: dict[str, dict[str, Any] | HttpError],
        url: str,
    ) -> Result[dict[str, Any], HttpError]:
        if url not in responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = responses[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_json(
        self, url: str, *, headers: Mapping[str, str] | None = None
    ) -> Result[dict[str, Any], HttpError]:
        self.calls.append(("GET", url))
        self.headers.append(dict(headers or {}))
        return self._respond(self._get_responses, url)

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object] | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        self.calls.append(("POST", url))
        self.headers.append(dict(headers or {}))
        return self._respond(self._post_responses, url)
