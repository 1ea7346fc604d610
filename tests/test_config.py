"""Tests for AppConfig helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from pgsheets import config as config_module
from pgsheets.config import AppConfig, ConnectionProfileConfig, load_config, save_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "config.toml")

    result = load_config()

    assert result == AppConfig()


def test_load_config_reads_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
connect_timeout = 3
preview_pretty = false

[[profiles]]
name = "Local"
host = "localhost"
port = 5433
database = "postgres"
user = "postgres"
ssl = true

[[profiles]]
name = "Local"
host = "shadowed"

[[profiles]]
name = "Cloud"
dsn = "postgres://app@cloud.example.com/app"
"""
    )
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_path)

    result = load_config()

    assert result.connect_timeout == 3.0
    assert result.preview_pretty is False
    assert [profile.name for profile in result.profiles] == ["Local", "Cloud"]
    assert result.profiles[0].host == "localhost"
    assert result.profiles[0].port == 5433
    assert result.profiles[0].ssl is True
    assert result.profile("Cloud").dsn == "postgres://app@cloud.example.com/app"


def test_load_config_handles_toml_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("connect_timeout = [unterminated")
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_path)

    result = load_config()

    assert result == AppConfig()


def test_save_config_round_trips_profiles(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "nested" / "config.toml"
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_path)
    config = AppConfig(
        connect_timeout=2.5,
        profiles=[
            ConnectionProfileConfig(name='Quote "me"', host="localhost", database="postgres", user="postgres"),
        ],
    )

    save_config(config)

    content = config_path.read_text()
    assert "connect_timeout = 2.5" in content
    assert "[[profiles]]" in content
    assert 'name = "Quote \\"me\\""' in content
    assert "password" not in content
    assert load_config() == config


def test_with_profile_replaces_in_place() -> None:
    config = AppConfig(profiles=[ConnectionProfileConfig(name="a"), ConnectionProfileConfig(name="b")])

    updated = config.with_profile(ConnectionProfileConfig(name="a", host="new"))

    assert [profile.name for profile in updated.profiles] == ["a", "b"]
    assert updated.profile("a").host == "new"
    assert config.profile("a").host is None
    assert updated.without_profile("a").profile("a") is None
