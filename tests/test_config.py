"""Tests for configuration loading, precedence and credential resolution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dinlr.config import (
    default_config_path,
    get_config_dir,
    get_data_dir,
    load_config,
    resolve_credential,
    save_config,
)
from dinlr.exceptions import ConfigError
from dinlr.models import DEFAULT_API_URL, CacheConfig, ClientConfig


def _write_config(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


class TestPaths:
    def test_config_dir_uses_xdg(self, isolated_config: Path) -> None:
        assert get_config_dir() == isolated_config / "config" / "dinlr"
        assert get_config_dir().is_dir()

    def test_data_dir_uses_xdg(self, isolated_config: Path) -> None:
        assert get_data_dir() == isolated_config / "data" / "dinlr"

    def test_default_config_path(self, isolated_config: Path) -> None:
        assert default_config_path() == isolated_config / "config" / "dinlr" / "config.json"


class TestLoadConfig:
    def test_missing_api_key(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="No API key configured"):
            load_config()

    def test_env_only(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DINLR_API_KEY", "sk_env")
        monkeypatch.setenv("DINLR_RESTAURANT_ID", "rest_env")
        config = load_config()
        assert config.api_key == "sk_env"
        assert config.restaurant_id == "rest_env"
        assert config.api_url == DEFAULT_API_URL
        assert config.debug is False

    def test_default_file(self, isolated_config: Path) -> None:
        _write_config(
            default_config_path(),
            {"api_key": "sk_file", "restaurant_id": "rest_file", "cache": {"ttl_seconds": 60}},
        )
        config = load_config()
        assert config.api_key == "sk_file"
        assert config.cache.ttl_seconds == 60

    def test_precedence(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write_config(
            isolated_config / "custom.json",
            {"api_key": "sk_file", "restaurant_id": "rest_file", "api_url": "https://file.test"},
        )
        monkeypatch.setenv("DINLR_API_KEY", "sk_env")
        monkeypatch.setenv("DINLR_RESTAURANT_ID", "rest_env")

        config = load_config(path, overrides={"restaurant_id": "rest_cli", "debug": None})

        assert config.api_key == "sk_env"
        assert config.restaurant_id == "rest_cli"
        assert config.api_url == "https://file.test"
        assert config.debug is False

    @pytest.mark.parametrize("value, expected", [("1", True), ("TRUE", True), ("no", False)])
    def test_debug_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, value: str, expected: bool
    ) -> None:
        monkeypatch.setenv("DINLR_API_KEY", "sk_env")
        monkeypatch.setenv("DINLR_DEBUG", value)
        assert load_config().debug is expected

    def test_explicit_path_must_exist(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config(isolated_config / "missing.json")

    def test_invalid_json(self, isolated_config: Path) -> None:
        path = isolated_config / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid config file"):
            load_config(path)

    def test_non_object_json(self, isolated_config: Path) -> None:
        path = _write_config(isolated_config / "list.json", [])  # type: ignore[arg-type]
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_config(path)

    def test_unknown_field_is_rejected(self, isolated_config: Path) -> None:
        path = _write_config(isolated_config / "c.json", {"api_key": "k", "colour": "red"})
        with pytest.raises(ConfigError, match="Invalid client configuration"):
            load_config(path)

    def test_api_key_from_env_source(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MY_DINLR_KEY", "sk_indirect")
        path = _write_config(isolated_config / "c.json", {"api_key": "env:MY_DINLR_KEY"})
        assert load_config(path).api_key == "sk_indirect"


class TestSaveConfig:
    def test_round_trip(self, isolated_config: Path) -> None:
        config = ClientConfig(
            api_key="env:MY_KEY",
            restaurant_id="rest_1",
            cache=CacheConfig(ttl_seconds=30, clear_on_write=True),
        )
        target = save_config(config)
        assert target == default_config_path()

        saved = json.loads(target.read_text())
        assert saved["api_key"] == "env:MY_KEY"
        assert saved["cache"]["clear_on_write"] is True
        assert not list(target.parent.glob("*.tmp"))

    def test_explicit_path(self, isolated_config: Path) -> None:
        target = save_config(ClientConfig(api_key="k"), isolated_config / "nested" / "c.json")
        assert target.is_file()
        assert load_config(target).api_key == "k"


class TestResolveCredential:
    def test_literal(self) -> None:
        assert resolve_credential("sk_live_1") == "sk_live_1"

    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOME_KEY", "value")
        assert resolve_credential("env:SOME_KEY") == "value"

    def test_env_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SOME_KEY", raising=False)
        with pytest.raises(ConfigError, match="SOME_KEY"):
            resolve_credential("env:SOME_KEY")

    def test_file(self, tmp_path: Path) -> None:
        key_file = tmp_path / "key.txt"
        key_file.write_text("sk_from_file\n")
        assert resolve_credential(f"file:{key_file}") == "sk_from_file"

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Credential file not found"):
            resolve_credential(f"file:{tmp_path / 'nope'}")


class TestModels:
    def test_blank_api_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            ClientConfig(api_key="  ")

    def test_api_key_stripped(self) -> None:
        assert ClientConfig(api_key=" k ").api_key == "k"

    def test_negative_retries_rejected(self) -> None:
        with pytest.raises(ValueError):
            ClientConfig(api_key="k", request={"max_retries": -1})

    def test_max_entries_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            CacheConfig(max_entries=0)
