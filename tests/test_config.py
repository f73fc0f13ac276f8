"""Tests for settings loading."""

from pathlib import Path

import pytest

from webbuilder.canvas.catalog import catalog_for, default_catalog
from webbuilder.config import CONFIG_ENV_VAR, Settings, load_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

    settings = load_settings()

    assert settings == Settings()
    assert settings.auto_execute
    assert settings.auto_execute_after == 5.0
    assert settings.step_timeout is None
    assert settings.pages_dir == Path("data/pages")
    assert settings.checkpoint_log is None


def test_load_from_yaml(tmp_path):
    path = tmp_path / "webbuilder.yaml"
    path.write_text("auto_execute_after: 2\nstep_timeout: 30\ncheckpoint_log: logs/cp.jsonl\n")

    settings = load_settings(path)

    assert settings.auto_execute_after == 2.0
    assert settings.step_timeout == 30.0
    assert settings.checkpoint_log == Path("logs/cp.jsonl")
    assert settings.auto_execute


def test_env_var_points_at_file(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text("auto_execute: false\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert not load_settings().auto_execute


def test_empty_file_keeps_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert load_settings(path) == Settings()


@pytest.mark.parametrize("content", [
    "auto_execute_afterr: 3\n",
    "auto_execute_after: -1\n",
    "step_timeout: 0\n",
])
def test_invalid_settings(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content)

    with pytest.raises(ValueError, match="Invalid settings"):
        load_settings(path)


def test_catalog_for_settings(tmp_path):
    assert catalog_for(Settings()) is default_catalog()

    path = tmp_path / "catalog.yaml"
    path.write_text("elements:\n  - {type: text, name: Text, category: Basic}\n")
    catalog = catalog_for(Settings(catalog_file=path))

    assert [entry.type for entry in catalog] == ["text"]
    assert catalog.frozen


def test_environment_overrides_fields(tmp_path, monkeypatch):
    """WEBBUILDER_* variables set single fields and win over the file."""
    path = tmp_path / "webbuilder.yaml"
    path.write_text("auto_execute_after: 2\npages_dir: site/pages\n")
    monkeypatch.setenv("WEBBUILDER_AUTO_EXECUTE_AFTER", "0.5")
    monkeypatch.setenv("WEBBUILDER_STEP_TIMEOUT", "30")

    settings = load_settings(path)

    assert settings.auto_execute_after == 0.5
    assert settings.step_timeout == 30.0
    assert settings.pages_dir == Path("site/pages")


def test_environment_only(monkeypatch, tmp_path):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("WEBBUILDER_AUTO_EXECUTE", "false")
    monkeypatch.setenv("WEBBUILDER_CHECKPOINT_LOG", str(tmp_path / "cp.jsonl"))

    settings = load_settings()

    assert not settings.auto_execute
    assert settings.checkpoint_log == tmp_path / "cp.jsonl"


def test_invalid_environment_value(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("WEBBUILDER_STEP_TIMEOUT", "0")

    with pytest.raises(ValueError, match="Invalid settings in environment"):
        load_settings()
