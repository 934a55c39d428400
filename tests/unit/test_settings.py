"""
Unit Tests for the Local Settings Loader
Tests reading the build settings file and converting it into CodeBuild environment variables

Testing Tools:
- pytest: Test framework
  Documentation: https://docs.pytest.org/
- tmp_path fixture: temporary directory per test
  Documentation: https://docs.pytest.org/en/stable/how-to/tmp_path.html
"""

import json
import logging
from dataclasses import replace
from pathlib import Path

import pytest
from aws_cdk import aws_codebuild as codebuild

from admin_infra.config import DEV_CONFIG, PROD_CONFIG, ConfigError
from admin_infra.settings import SettingsError, load_settings, settings_for, to_build_environment

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def write_settings(tmp_path, content, name="settings.json"):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_round_trip_preserves_pairs(tmp_path):
    """Keys, values and their order come back exactly as written."""
    settings = {"VITE_API_URL": "https://api.example.com", "EMPTY": "", "SPACED": " keep me "}
    path = write_settings(tmp_path, json.dumps(settings))

    loaded = load_settings(path)

    assert loaded == settings
    assert list(loaded) == list(settings)


def test_accepts_string_path(tmp_path):
    path = write_settings(tmp_path, '{"A": "1"}')
    assert load_settings(str(path)) == {"A": "1"}


def test_missing_file_fails(tmp_path):
    with pytest.raises(SettingsError, match="not found"):
        load_settings(tmp_path / "missing.json")


def test_malformed_json_fails(tmp_path):
    path = write_settings(tmp_path, '{"A": "1",')
    with pytest.raises(SettingsError, match="not valid JSON"):
        load_settings(path)


def test_non_object_document_fails(tmp_path):
    path = write_settings(tmp_path, '["A", "B"]')
    with pytest.raises(SettingsError, match="JSON object"):
        load_settings(path)


@pytest.mark.parametrize("value", [1, True, None, {"nested": "x"}])
def test_non_string_value_fails(tmp_path, value):
    path = write_settings(tmp_path, json.dumps({"A": value}))
    with pytest.raises(SettingsError, match="'A'"):
        load_settings(path)


def test_settings_error_is_config_error():
    assert issubclass(SettingsError, ConfigError)


def test_settings_for_without_file_is_empty():
    assert PROD_CONFIG.settings_file is None
    assert settings_for(PROD_CONFIG) == {}


def test_settings_for_resolves_relative_to_base_dir(tmp_path):
    write_settings(tmp_path, '{"STAGE": "dev"}', name="dev.json")
    config = replace(DEV_CONFIG, settings_file="dev.json")

    assert settings_for(config, base_dir=tmp_path) == {"STAGE": "dev"}


def test_settings_for_missing_file_aborts(tmp_path):
    config = replace(DEV_CONFIG, settings_file="absent.json")
    with pytest.raises(SettingsError):
        settings_for(config, base_dir=tmp_path)


def test_repository_settings_file_loads():
    """The settings file shipped for dev must stay loadable."""
    settings = settings_for(DEV_CONFIG, base_dir=PROJECT_ROOT)
    assert "VITE_STAGE" in settings


def test_to_build_environment_is_verbatim_plaintext():
    variables = to_build_environment({"A": "1", "B": "two words"})

    assert set(variables) == {"A", "B"}
    assert variables["B"].value == "two words"
    assert variables["A"].type == codebuild.BuildEnvironmentVariableType.PLAINTEXT


def test_invalid_utf8_fails(tmp_path):
    path = tmp_path / "settings.json"
    path.write_bytes(b'{"A": "\xff\xfe"}')
    with pytest.raises(SettingsError, match="not valid JSON"):
        load_settings(path)


def test_duplicate_key_fails(tmp_path):
    """Only the last duplicate would survive json.load, so the file could not round-trip."""
    path = write_settings(tmp_path, '{"A": "1", "A": "2"}')
    with pytest.raises(SettingsError, match="Duplicate setting 'A'"):
        load_settings(path)


def test_load_logs_count_but_never_values(tmp_path, caplog):
    path = write_settings(tmp_path, json.dumps({"API_KEY": "s3cr3t-value", "STAGE": "hidden-stage"}))

    with caplog.at_level(logging.INFO, logger="admin_infra.settings"):
        load_settings(path)

    assert "Loaded 2 settings" in caplog.text
    assert str(path) in caplog.text
    assert "s3cr3t-value" not in caplog.text
    assert "hidden-stage" not in caplog.text
