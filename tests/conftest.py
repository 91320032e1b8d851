"""Shared fixtures."""

import pytest

from cronsched.config import ENV_PREFIX, reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Run every test against an environment without engine settings."""
    for suffix in ("TIMEZONE", "SEARCH_HORIZON_DAYS", "LOG_LEVEL"):
        monkeypatch.delenv(f"{ENV_PREFIX}_{suffix}", raising=False)
    reset_config()
    yield
    reset_config()
