from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_ENV_VAR = "ICHAT_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "ichat-archive" / "config.yml"


@dataclass(slots=True)
class LoggingConfig:
    """Logging configuration from config.yml."""

    level: str = "INFO"
    log_dir: Optional[Path] = None
    max_mb: int = 10
    backup_count: int = 5


@dataclass(slots=True)
class ExportConfig:
    """JSON export configuration from config.yml."""

    indent: int = 2
    include_meta: bool = False
    validate: bool = True  # Check the export document against the JSON schema


@dataclass(slots=True)
class AppConfig:
    """Top-level configuration resolved from disk."""

    source: Optional[Path] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    export: ExportConfig = field(default_factory=ExportConfig)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            content = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Config file {path} is not valid YAML: {exc}") from exc
        if not isinstance(content, dict):
            raise ValueError(f"Config file {path} must contain a mapping at the top level.")
        return content


def _section(overrides: Dict[str, Any], name: str, path: Path) -> Dict[str, Any]:
    section = overrides.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' in {path} must be a mapping.")
    return section


def default_config_path() -> Path:
    """Return the config path from $ICHAT_CONFIG, falling back to the per-user default."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_app_config(path: Optional[Path] = None) -> AppConfig:
    """Load application configuration from disk, providing sensible defaults."""

    config_path = path if path is not None else default_config_path()
    config_overrides = _load_yaml(config_path)

    logging_cfg = _section(config_overrides, "logging", config_path)
    log_dir = logging_cfg.get("log_dir")
    logging_config = LoggingConfig(
        level=str(logging_cfg.get("level", "INFO")).upper(),
        log_dir=Path(log_dir).expanduser() if log_dir else None,
        max_mb=int(logging_cfg.get("max_mb", 10)),
        backup_count=int(logging_cfg.get("backup_count", 5)),
    )

    export_cfg = _section(config_overrides, "export", config_path)
    export_config = ExportConfig(
        indent=int(export_cfg.get("indent", 2)),
        include_meta=bool(export_cfg.get("include_meta", False)),
        validate=bool(export_cfg.get("validate", True)),
    )

    return AppConfig(
        source=config_path if config_overrides else None,
        logging=logging_config,
        export=export_config,
    )
