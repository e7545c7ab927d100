"""Tests for settings loaded from the environment."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from doner.config import BoardFieldConfig, Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "GITHUB_TOKEN",
        "DONER_STATUS_FIELD",
        "DONER_ITERATION_FIELD",
        "DONER_CONFIG_DIR",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_field_defaults(clean_env):
    settings = Settings(_env_file=None)
    fields = BoardFieldConfig.from_settings(settings)
    assert fields == BoardFieldConfig(status_field="Status", iteration_field="Iteration")


def test_field_overrides_from_environment(clean_env):
    clean_env.setenv("DONER_STATUS_FIELD", "Stage")
    clean_env.setenv("DONER_ITERATION_FIELD", "Sprint")

    fields = BoardFieldConfig.from_settings(Settings(_env_file=None))

    assert fields.status_field == "Stage"
    assert fields.iteration_field == "Sprint"


def test_blank_token_is_treated_as_missing(clean_env):
    clean_env.setenv("GITHUB_TOKEN", "   ")
    assert Settings(_env_file=None).GITHUB_TOKEN is None


def test_token_is_stripped(clean_env):
    clean_env.setenv("GITHUB_TOKEN", " ghp_abc\n")
    assert Settings(_env_file=None).GITHUB_TOKEN == "ghp_abc"


def test_log_level_is_normalised(clean_env):
    clean_env.setenv("LOG_LEVEL", "debug")
    assert Settings(_env_file=None).LOG_LEVEL == "DEBUG"


def test_invalid_log_level(clean_env):
    clean_env.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_config_dir(clean_env, tmp_path):
    assert Settings(_env_file=None).config_dir == Path.home() / ".config" / "doner"
    clean_env.setenv("DONER_CONFIG_DIR", str(tmp_path))
    assert Settings(_env_file=None).config_dir == tmp_path


def test_board_fields_are_immutable():
    fields = BoardFieldConfig()
    with pytest.raises(ValidationError):
        fields.status_field = "Stage"
