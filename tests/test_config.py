from pathlib import Path

import pytest

from regionsnip.config import (
    Config,
    config_defaults,
    config_to_dict,
    load_config,
    validate_config_dict,
    validate_config_file,
)
from regionsnip.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in config_defaults():
        monkeypatch.delenv(f"REGIONSNIP_{key.upper()}", raising=False)
    monkeypatch.delenv("REGIONSNIP_CONFIG", raising=False)
    monkeypatch.delenv("REGIONSNIP_CONFIG_PATH", raising=False)


def test_defaults_without_file(tmp_path):
    config = load_config(config_path=tmp_path / "missing.yaml")

    assert config.default_quality == 80
    assert config.region_scale == 1.0
    assert config.full_scale == 0.75
    assert config.capture_backend == "auto"
    assert config.prompt == "Drag to select an area. Press Esc to cancel."


def test_file_then_env_then_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("default_quality: 60\nfull_scale: 0.5\nprompt: Pick one\n")
    monkeypatch.setenv("REGIONSNIP_FULL_SCALE", "0.4")
    monkeypatch.setenv("REGIONSNIP_ENABLE_NOTIFICATION", "no")

    config = load_config(config_path=path, overrides={"prompt": "From CLI", "default_quality": None})

    assert config.default_quality == 60
    assert config.full_scale == 0.4
    assert config.enable_notification is False
    assert config.prompt == "From CLI"


def test_invalid_env_number_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("REGIONSNIP_DEFAULT_QUALITY", "high")

    config = load_config(config_path=tmp_path / "missing.yaml")

    assert config.default_quality == 80


def test_lock_file_is_path(tmp_path):
    config = load_config(overrides={"lock_file": str(tmp_path / "x.lock")}, config_path=tmp_path / "none.yaml")

    assert isinstance(config.lock_file, Path)
    assert config_to_dict(config)["lock_file"] == str(tmp_path / "x.lock")


def test_strict_load_rejects_non_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ConfigurationError):
        load_config(config_path=path, strict=True)

    assert load_config(config_path=path).default_quality == 80


def test_validate_config_dict_reports_problems():
    errors = validate_config_dict({
        "default_quality": 0,
        "full_scale": "big",
        "capture_backend": "x11",
        "enable_notification": "yes",
        "colour": "lime",
    })

    assert "default_quality must be >= 1" in errors
    assert "full_scale must be a number" in errors
    assert any(e.startswith("capture_backend must be one of") for e in errors)
    assert "enable_notification must be a boolean" in errors
    assert "Unknown config key: colour" in errors


def test_validate_config_file(tmp_path):
    good = tmp_path / "good.yaml"
    good.write_text("default_quality: 95\nregion_scale: 0.5\n")
    bad = tmp_path / "bad.yaml"
    bad.write_text("default_quality: [\n")

    assert validate_config_file(good) == []
    assert validate_config_file(tmp_path / "absent.yaml") == []
    assert len(validate_config_file(bad)) == 1


def test_config_to_dict_matches_defaults():
    assert config_to_dict(Config()) == config_defaults()


def test_invalid_file_values_fall_back_to_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("lock_file: 5\ndefault_quality: high\nregion_scale: x\nfull_scale: 0.5\n")

    config = load_config(config_path=path)

    assert config.lock_file == Config().lock_file
    assert config.default_quality == 80
    assert config.region_scale == 1.0
    assert config.full_scale == 0.5


def test_out_of_range_file_value_is_ignored(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("default_quality: 500\ncapture_backend: x11\n")

    config = load_config(config_path=path)

    assert config.default_quality == 80
    assert config.capture_backend == "auto"
