"""Profile and secret persistence backing the connection manager."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

from .config import CONFIG_DIR, AppConfig, ConnectionProfileConfig, load_config, save_config
from .models import ConnectionProfile

LOG = logging.getLogger(__name__)

SECRETS_FILE = CONFIG_DIR / "secrets.json"


@runtime_checkable
class SecretStore(Protocol):
    """Async key/value store for connection passwords."""

    async def get(self, key: str) -> str | None:
        """Return the stored secret or ``None``."""

    async def store(self, key: str, value: str) -> None:
        """Persist ``value`` under ``key``."""

    async def delete(self, key: str) -> None:
        """Forget ``key``; missing keys are ignored."""


class MemorySecretStore:
    """Secret store kept in process memory."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._secrets: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._secrets.get(key)

    async def store(self, key: str, value: str) -> None:
        self._secrets[key] = value

    async def delete(self, key: str) -> None:
        self._secrets.pop(key, None)


class FileSecretStore:
    """Secret store backed by a JSON file readable only by the owner."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or SECRETS_FILE

    async def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    async def store(self, key: str, value: str) -> None:
        secrets = self._read()
        secrets[key] = value
        self._write(secrets)

    async def delete(self, key: str) -> None:
        secrets = self._read()
        if secrets.pop(key, None) is not None:
            self._write(secrets)

    def _read(self) -> dict[str, str]:
        try:
            raw = json.loads(self._path.read_text())
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError):
            LOG.warning("Ignoring unreadable secrets file", extra={"path": str(self._path)})
            return {}
        if not isinstance(raw, dict):
            return {}
        return {str(key): value for key, value in raw.items() if isinstance(value, str)}

    def _write(self, secrets: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as handle:
            json.dump(secrets, handle, indent=2, sort_keys=True)


class ProfileStore:
    """Registry of named profiles persisted in the app configuration."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        persist: Callable[[AppConfig], None] | None = save_config,
    ) -> None:
        self._config = config if config is not None else load_config()
        self._persist = persist

    @property
    def config(self) -> AppConfig:
        return self._config

    def profiles(self) -> tuple[ConnectionProfile, ...]:
        return tuple(_from_config(entry) for entry in self._config.profiles)

    def get(self, name: str) -> ConnectionProfile | None:
        entry = self._config.profile(name)
        return _from_config(entry) if entry else None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._config.profile(name) is not None

    def upsert(self, profile: ConnectionProfile) -> None:
        """Add or replace the profile and persist the configuration."""

        self._config = self._config.with_profile(_to_config(profile))
        self._save()

    def delete(self, name: str) -> bool:
        if name not in self:
            return False
        self._config = self._config.without_profile(name)
        self._save()
        return True

    def _save(self) -> None:
        if self._persist is not None:
            self._persist(self._config)


def _from_config(entry: ConnectionProfileConfig) -> ConnectionProfile:
    return ConnectionProfile(
        name=entry.name,
        dsn=entry.dsn,
        host=entry.host,
        port=entry.port,
        database=entry.database,
        user=entry.user,
        ssl=entry.ssl,
    )


def _to_config(profile: ConnectionProfile) -> ConnectionProfileConfig:
    return ConnectionProfileConfig(
        name=profile.name,
        dsn=profile.dsn,
        host=profile.host,
        port=profile.port,
        database=profile.database,
        user=profile.user,
        ssl=profile.ssl,
    )


__all__ = [
    "FileSecretStore",
    "MemorySecretStore",
    "ProfileStore",
    "SECRETS_FILE",
    "SecretStore",
]
