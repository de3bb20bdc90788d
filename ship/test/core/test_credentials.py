"""Tests for ship.core.credentials module."""

from __future__ import annotations

from ship.core.config import CredentialsConfig
from ship.core.credentials import Credentials, CredentialStore, load_credentials


class TestCredentials:
    """Secrets must never show up in repr or str."""

    def test_repr_hides_token(self) -> None:
        creds = Credentials(name="app_store", token="s3cr3t-token")
        assert "s3cr3t-token" not in repr(creds)
        assert "s3cr3t-token" not in str(creds)
        assert str(creds) == "app_store (redacted)"

    def test_authorization_header(self) -> None:
        creds = Credentials(name="web", token="abc")
        assert creds.authorization_header() == {"Authorization": "Bearer abc"}

    def test_store_repr_hides_tokens(self) -> None:
        store = CredentialStore({"play_store": Credentials("play_store", "hidden-value")})
        assert "hidden-value" not in repr(store)


class TestLoadCredentials:
    """Test reading credentials from the environment."""

    def test_reads_configured_variables(self) -> None:
        store = load_credentials(
            CredentialsConfig(play_store_env="PLAY"),
            {"APP_STORE_CONNECT_TOKEN": "a", "PLAY": "b"},
        )
        assert store.has("app_store")
        assert store.has("play_store")
        assert not store.has("web")
        credentials = store.get("play_store")
        assert credentials is not None
        assert credentials.token == "b"

    def test_blank_values_are_missing(self) -> None:
        store = load_credentials(CredentialsConfig(), {"GOOGLE_PLAY_TOKEN": "   "})
        assert store.get("play_store") is None
