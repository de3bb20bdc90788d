"""Opaque credential handles.

Credentials are read from environment variables named in release.toml and
handed to store clients as-is. Their repr never contains the secret so
they can travel through dataclasses, error values and console output
without leaking.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .config import CredentialsConfig

__all__ = ["Credentials", "CredentialStore", "load_credentials"]


@dataclass(frozen=True, slots=True)
class Credentials:
    """A bearer token for one backend."""

    name: str
    token: str = field(repr=False)

    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def __str__(self) -> str:
        return f"{self.name} (redacted)"


@dataclass(frozen=True, slots=True)
class CredentialStore:
    """Credentials keyed by backend name (app_store, play_store, web)."""

    entries: Mapping[str, Credentials] = field(default_factory=dict)

    def get(self, name: str) -> Credentials | None:
        return self.entries.get(name)

    def has(self, name: str) -> bool:
        return name in self.entries


def load_credentials(config: CredentialsConfig, env: Mapping[str, str]) -> CredentialStore:
    """Collect the credentials that are present in env."""
    names = {
        "app_store": config.app_store_env,
        "play_store": config.play_store_env,
        "web": config.web_env,
    }
    entries: dict[str, Credentials] = {}
    for name, var in names.items():
        token = env.get(var, "").strip()
        if token:
            entries[name] = Credentials(name=name, token=token)
    return CredentialStore(entries=entries)
