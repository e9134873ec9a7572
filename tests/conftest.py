"""Shared fixtures.

python-dotenv writes straight into os.environ, so every test starts (and
ends) without RESULT_JANITOR_* variables and with a fresh config registry.
"""
import pytest

import src.config as config_module

ENV_VARS = (
    "RESULT_JANITOR_RULES",
    "RESULT_JANITOR_DISABLED_RULES",
    "RESULT_JANITOR_TARGETS",
    "RESULT_JANITOR_EXCLUDE",
    "RESULT_JANITOR_CACHE_DIR",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from the caller's environment and from each other."""
    for name in ENV_VARS:
        # setenv first so monkeypatch removes whatever dotenv loads later
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setattr(config_module, "_configs", {})
    yield
