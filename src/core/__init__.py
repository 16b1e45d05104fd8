"""Shared infrastructure: configuration, logging, timestamps and schema validation."""

from .config import AppConfig, load_app_config  # noqa: F401
