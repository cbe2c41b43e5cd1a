"""Tests for configuration loading."""

import pytest

from cisummary_core.config import load_config
from cisummary_core.errors import ConfigurationError


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["title"] == "CI Summary"
    assert config["max_attempts"] == 5
    assert config["retry_delay"] == 5.0
    assert config["max_jitter"] == 30.0


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".ci-summary.yml"
    cfg.write_text("title: Checks\nmax_attempts: 8\nmax_jitter: 10\n")
    config = load_config(config_path=str(cfg))
    assert config["title"] == "Checks"
    assert config["max_attempts"] == 8
    assert config["max_jitter"] == 10.0
    assert isinstance(config["max_jitter"], float)


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / ".ci-summary.yml"
    cfg.write_text("")
    assert load_config(config_path=str(cfg))["max_attempts"] == 5


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".ci-summary.yml"
    cfg.write_text("max_attempts: 8\n")
    config = load_config(config_path=str(cfg), cli_overrides={"max_attempts": 2})
    assert config["max_attempts"] == 2


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".ci-summary.yml"
    cfg.write_text("title: Checks\n")
    config = load_config(config_path=str(cfg), cli_overrides={"title": None})
    assert config["title"] == "Checks"


@pytest.mark.parametrize(
    "content",
    ["max_attempts: 0\n", "max_attempts: two\n", "max_attempts: true\n", "retry_delay: -1\n", "max_jitter: soon\n"],
)
def test_invalid_values_rejected(tmp_path, content):
    cfg = tmp_path / ".ci-summary.yml"
    cfg.write_text(content)
    with pytest.raises(ConfigurationError):
        load_config(config_path=str(cfg))


def test_non_mapping_rejected(tmp_path):
    cfg = tmp_path / ".ci-summary.yml"
    cfg.write_text("- a\n- b\n")
    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(config_path=str(cfg))


def test_unparseable_yaml_rejected(tmp_path):
    cfg = tmp_path / ".ci-summary.yml"
    cfg.write_text("title: [unclosed\n")
    with pytest.raises(ConfigurationError, match="Could not parse"):
        load_config(config_path=str(cfg))


def test_env_vars_loaded(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    monkeypatch.setenv("GITHUB_REPOSITORY", "acme/web")
    config = load_config(config_path="nonexistent.yml")
    assert config["github_token"] == "gh-token"
    assert config["repository"] == "acme/web"


def test_missing_env_vars_are_none(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_REPOSITORY", raising=False)
    config = load_config(config_path="nonexistent.yml")
    assert config["github_token"] is None
    assert config["repository"] is None
