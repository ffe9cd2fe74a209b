"""Pytest fixtures and config."""

from unittest.mock import Mock

import pytest

from shellgate.core.gateway import ShellGateway
from shellgate.tests.factories import make_config, make_policy


@pytest.fixture(autouse=True)
def env_cleanup(monkeypatch):
    """Keep the developer's shellgate env out of tests."""
    for name in (
        "SHELLGATE_CONFIG",
        "SHELLGATE_ALLOWED_PATHS",
        "SHELLGATE_INITIAL_DIR",
        "SHELLGATE_RESTRICT_WORKING_DIRECTORY",
        "SHELLGATE_COMMAND_TIMEOUT",
        "SHELLGATE_LOG_LEVEL",
        "SHELLGATE_HTTP_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def chdir():
    return Mock()


@pytest.fixture
def posix_gateway(chdir):
    """Gateway whose allow-list is /srv/work and whose active directory is set to it."""
    policy = make_policy(allowed=["/srv/work"], blocked_commands=["rm"])
    return ShellGateway(make_config(policy), startup_dir="/srv/work", chdir=chdir)
