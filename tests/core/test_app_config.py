"""
Tests for YAML application configuration loading.
"""

from pathlib import Path

import pytest

from core.config import AppConfig, ExportConfig, LoggingConfig, default_config_path, load_app_config


def test_missing_file_gives_defaults(tmp_path):
    config = load_app_config(tmp_path / "config.yml")
    assert isinstance(config, AppConfig)
    assert config.source is None
    assert config.logging == LoggingConfig()
    assert config.export == ExportConfig()
    assert config.export.indent == 2
    assert config.export.validate is True


def test_values_loaded(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(
        "logging:\n"
        "  level: debug\n"
        "  log_dir: ~/ichat-logs\n"
        "  max_mb: 3\n"
        "  backup_count: 2\n"
        "export:\n"
        "  indent: 0\n"
        "  include_meta: true\n"
        "  validate: false\n",
        encoding="utf-8",
    )
    config = load_app_config(path)
    assert config.source == path
    assert config.logging.level == "DEBUG"
    assert config.logging.log_dir == Path("~/ichat-logs").expanduser()
    assert config.logging.max_mb == 3
    assert config.logging.backup_count == 2
    assert config.export.indent == 0
    assert config.export.include_meta is True
    assert config.export.validate is False


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("", encoding="utf-8")
    assert load_app_config(path).export == ExportConfig()


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping at the top level"):
        load_app_config(path)


def test_section_must_be_mapping(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("export: 4\n", encoding="utf-8")
    with pytest.raises(ValueError, match="'export'"):
        load_app_config(path)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("export: [unclosed\n", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid YAML"):
        load_app_config(path)


def test_env_var_selects_config(tmp_path, monkeypatch):
    path = tmp_path / "from-env.yml"
    path.write_text("export:\n  indent: 8\n", encoding="utf-8")
    monkeypatch.setenv("ICHAT_CONFIG", str(path))
    assert default_config_path() == path
    assert load_app_config().export.indent == 8


def test_default_path_without_env(monkeypatch):
    monkeypatch.delenv("ICHAT_CONFIG", raising=False)
    assert default_config_path().parts[-3:] == (".config", "ichat-archive", "config.yml")
