"""Shared fixtures for the xml_extractor test suite."""

import pytest

from xml_extractor.config import settings


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Run every test against the built-in defaults, not a user config file."""
    monkeypatch.delenv(settings.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setattr(settings, "_config_instance", None)
    yield
    settings._config_instance = None
