"""
Early pytest configuration plugin.

Loaded before any test module is imported; keeps the tests away from the
developer's real ``~/.okta`` directory and Okta environment variables.
"""

import os

import pytest

_OKTA_ENV_PREFIXES = ("OKTA_CLIENT_", "OKTA_CLI_", "OKTA_SETUP_")


def pytest_configure(config):
    """Mark the run as a test run before collection starts."""
    os.environ["OKTA_SETUP_ENV"] = "test"


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path_factory, monkeypatch):
    """Point HOME at a temp dir and drop inherited Okta settings."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    for name in list(os.environ):
        if name.startswith(_OKTA_ENV_PREFIXES) and name != "OKTA_SETUP_ENV":
            monkeypatch.delenv(name)
    yield home
