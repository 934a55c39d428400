"""
Local settings file for the build stage.

The file is a flat JSON object of name -> value. Entries are injected verbatim
as plaintext environment variables of the CodeBuild project, e.g.

    {
        "VITE_API_URL": "https://api.example.com",
        "VITE_STAGE": "dev"
    }
"""

import json
import logging
from pathlib import Path
from typing import Dict, Union

from aws_cdk import aws_codebuild as codebuild

from admin_infra.config import ConfigError, StackConfig

logger = logging.getLogger(__name__)


class SettingsError(ConfigError):
    """Raised when the settings file is missing or malformed."""


def _reject_duplicate_keys(pairs):
    data = {}
    for key, value in pairs:
        if key in data:
            raise SettingsError(f"Duplicate setting '{key}'")
        data[key] = value
    return data


def load_settings(path: Union[str, Path]) -> Dict[str, str]:
    """
    Read the settings file at `path`.

    Returns:
        dict: the key/value pairs exactly as written in the file

    Raises:
        SettingsError: file missing, not valid JSON, not an object,
            holding a duplicate key or a non-string value
    """
    settings_path = Path(path)
    if not settings_path.is_file():
        raise SettingsError(f"Settings file not found: {settings_path}")

    try:
        with settings_path.open(encoding="utf-8") as f:
            data = json.load(f, object_pairs_hook=_reject_duplicate_keys)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SettingsError(f"Settings file {settings_path} is not valid JSON: {e}") from e
    except OSError as e:
        raise SettingsError(f"Could not read settings file {settings_path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {settings_path} must contain a JSON object")

    for key, value in data.items():
        if not isinstance(value, str):
            raise SettingsError(f"Setting '{key}' in {settings_path} must be a string, got {type(value).__name__}")

    logger.info("Loaded %d settings from %s", len(data), settings_path)
    return data


def settings_for(config: StackConfig, base_dir: Union[str, Path, None] = None) -> Dict[str, str]:
    """Load the settings file named by `config`, or nothing when it names none."""
    if not config.settings_file:
        return {}
    path = Path(config.settings_file)
    if base_dir is not None and not path.is_absolute():
        path = Path(base_dir) / path
    return load_settings(path)


def to_build_environment(settings: Dict[str, str]) -> Dict[str, codebuild.BuildEnvironmentVariable]:
    """Wrap each setting as a plaintext CodeBuild environment variable."""
    return {
        name: codebuild.BuildEnvironmentVariable(
            value=value,
            type=codebuild.BuildEnvironmentVariableType.PLAINTEXT,
        )
        for name, value in settings.items()
    }
