"""App configuration loading helpers."""

from __future__ import annotations

import logging
from pathlib import Path

import tomllib

from pydantic import BaseModel, Field

CONFIG_DIR = Path.home() / ".config" / "pgsheets"
CONFIG_FILE = CONFIG_DIR / "config.toml"

LOG = logging.getLogger(__name__)


class ConnectionProfileConfig(BaseModel):
    """Connection profile configuration stored in config.toml.

    Passwords are never part of this model; see :mod:`pgsheets.storage`.
    """

    name: str
    dsn: str | None = None
    host: str | None = None
    port: int | None = 5432
    database: str | None = None
    user: str | None = None
    ssl: bool = False


class AppConfig(BaseModel):
    """Shape of the application configuration file."""

    connect_timeout: float = 5.0
    preview_pretty: bool = True
    profiles: list[ConnectionProfileConfig] = Field(default_factory=list)

    def profile(self, name: str) -> ConnectionProfileConfig | None:
        for profile in self.profiles:
            if profile.name == name:
                return profile
        return None

    def with_profile(self, profile: ConnectionProfileConfig) -> AppConfig:
        """Return a copy with the profile added or replaced by name."""

        profiles = [entry for entry in self.profiles if entry.name != profile.name]
        index = next((idx for idx, entry in enumerate(self.profiles) if entry.name == profile.name), None)
        if index is None:
            profiles.append(profile)
        else:
            profiles.insert(index, profile)
        return self.model_copy(update={"profiles": profiles})

    def without_profile(self, name: str) -> AppConfig:
        """Return a copy with the named profile removed."""

        profiles = [entry for entry in self.profiles if entry.name != name]
        return self.model_copy(update={"profiles": profiles})


def load_config() -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file()
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError):
        LOG.warning("Ignoring unreadable config file", extra={"path": str(CONFIG_FILE)})
        return AppConfig()

    profiles_data = data.get("profiles")
    profiles: list[ConnectionProfileConfig] = []
    if isinstance(profiles_data, list):
        profiles = [
            ConnectionProfileConfig(**profile)
            for profile in profiles_data  # type: ignore[list-item]
            if isinstance(profile, dict)
        ]

    return AppConfig(
        connect_timeout=data.get("connect_timeout", AppConfig.model_fields["connect_timeout"].default),
        preview_pretty=data.get("preview_pretty", AppConfig.model_fields["preview_pretty"].default),
        profiles=profiles,
    )


def save_config(config: AppConfig) -> None:
    """Persist configuration to disk."""

    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = [
        f"connect_timeout = {config.connect_timeout}",
        f"preview_pretty = {str(config.preview_pretty).lower()}",
    ]
    if config.profiles:
        lines.append("")
        for profile in config.profiles:
            lines.append("[[profiles]]")
            lines.append(f"name = {_quote(profile.name)}")
            if profile.dsn:
                lines.append(f"dsn = {_quote(profile.dsn)}")
            if profile.host:
                lines.append(f"host = {_quote(profile.host)}")
            if profile.port is not None:
                lines.append(f"port = {profile.port}")
            if profile.database:
                lines.append(f"database = {_quote(profile.database)}")
            if profile.user:
                lines.append(f"user = {_quote(profile.user)}")
            if profile.ssl:
                lines.append("ssl = true")
            lines.append("")
    CONFIG_FILE.write_text("\n".join(lines) + "\n")


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _read_config_file() -> dict[str, object]:
    with CONFIG_FILE.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    if isinstance(raw, dict):
        timeout = raw.get("connect_timeout")
        if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
            data["connect_timeout"] = float(timeout)
        pretty = raw.get("preview_pretty")
        if isinstance(pretty, bool):
            data["preview_pretty"] = pretty
        profiles = raw.get("profiles")
        if isinstance(profiles, list):
            parsed_profiles: list[dict[str, object]] = []
            seen: set[str] = set()
            for profile in profiles:
                if not isinstance(profile, dict):
                    continue
                parsed: dict[str, object] = {}
                for key in ("name", "dsn", "host", "database", "user"):
                    value = profile.get(key)
                    if isinstance(value, str):
                        parsed[key] = value
                port = profile.get("port")
                if isinstance(port, int):
                    parsed["port"] = port
                ssl = profile.get("ssl")
                if isinstance(ssl, bool):
                    parsed["ssl"] = ssl
                name = parsed.get("name")
                # Names are unique; the first entry wins.
                if name and name not in seen:
                    seen.add(str(name))
                    parsed_profiles.append(parsed)
            data["profiles"] = parsed_profiles
    return data


__all__ = [
    "AppConfig",
    "CONFIG_DIR",
    "CONFIG_FILE",
    "ConnectionProfileConfig",
    "load_config",
    "save_config",
]
