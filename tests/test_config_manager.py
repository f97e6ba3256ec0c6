"""Tests for the TOML configuration layer."""

from pathlib import Path

import pytest

from pursgraph import config_manager


@pytest.fixture
def config_home(temp_dir: Path, monkeypatch) -> Path:
    """Point the config file at a temporary directory."""
    home = temp_dir / "pursgraph-home"
    monkeypatch.setattr(config_manager, "BASE_DIR", home)
    monkeypatch.setattr(config_manager, "CONFIG_FILE", home / "config.toml")
    return home


def test_defaults_without_file(config_home: Path):
    assert config_manager.load_full_config() == {}
    ide = config_manager.load_section("ide")
    assert ide["port"] == 4242
    assert ide["log_level"] == "none"
    assert config_manager.load_section("graph")["max_concurrent_requests"] == 5


def test_save_setting_merges_with_defaults(config_home: Path):
    config_manager.save_setting("ide", "port", 5000)
    ide = config_manager.load_section("ide")
    assert ide["port"] == 5000
    assert ide["output_directory"] == "output/"
    assert (config_home / "config.toml").exists()


def test_save_setting_keeps_other_sections(config_home: Path):
    config_manager.save_setting("ide", "port", 5000)
    config_manager.save_setting("graph", "max_concurrent_requests", 2)
    full = config_manager.load_full_config()
    assert full == {"ide": {"port": 5000}, "graph": {"max_concurrent_requests": 2}}


def test_unreadable_file_falls_back_to_defaults(config_home: Path):
    config_home.mkdir(parents=True)
    (config_home / "config.toml").write_text("[ide\nport = 1\n")
    assert config_manager.load_full_config() == {}
    assert config_manager.load_section("ide")["port"] == 4242


def test_reset(config_home: Path):
    assert config_manager.reset_config() is False
    config_manager.save_setting("ide", "port", 5000)
    assert config_manager.reset_config() is True
    assert config_manager.load_section("ide")["port"] == 4242


class TestCoerceValue:
    def test_int(self):
        assert config_manager.coerce_value("ide", "port", "4300") == 4300

    def test_float(self):
        assert config_manager.coerce_value("ide", "warmup_seconds", "0.5") == 0.5

    def test_list(self):
        assert config_manager.coerce_value("ide", "source_globs", "src/**/*.purs, test/**/*.purs") == [
            "src/**/*.purs",
            "test/**/*.purs",
        ]

    def test_string(self):
        assert config_manager.coerce_value("ide", "log_level", "debug") == "debug"

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            config_manager.coerce_value("ide", "colour", "blue")

    def test_bad_number(self):
        with pytest.raises(ValueError):
            config_manager.coerce_value("graph", "max_concurrent_requests", "many")
