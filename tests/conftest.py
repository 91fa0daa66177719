"""Shared fixtures: stub daemon sessions and suite configuration."""

import sys
from pathlib import Path

import pytest

from scripter.config import Config
from scripter.session import InteractiveSession

STUB_DAEMON = Path(__file__).parent / "stubs" / "fake_daemon.py"

TEST_ENV = {
    "EI_USERNAME": "selenium",
    "EI_PASSWORD": "hunter2",
    "EI_PROJECTNAME": "Selenium project",
    "EI_HMACKEY": "0123456789abcdef",
    "EI_TESTWIFI": "0",
    "EI_HOSTNAME": "test.example.com",
}


@pytest.fixture
def config():
    """Configuration with every required variable set."""
    return Config(TEST_ENV)


@pytest.fixture
def spawn_python():
    """Spawn ``python -u <args>`` sessions that are closed after the test."""
    sessions = []

    def spawn(*args, env=None):
        session = InteractiveSession.spawn(sys.executable, ["-u", *args], env=env)
        sessions.append(session)
        return session

    yield spawn

    for session in sessions:
        session.close(grace=2)


@pytest.fixture
def spawn_stub(spawn_python, config):
    """Spawn the stub daemon for a scenario with the daemon's restricted environment."""

    def spawn(scenario="happy"):
        return spawn_python(str(STUB_DAEMON), scenario, "--clean", env=config.daemon_environment())

    return spawn
