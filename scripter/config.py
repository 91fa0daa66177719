"""
Configuration Management

Environment variables consumed by the device-integration suite. Required
variables are checked eagerly so a missing one fails with its name rather than
as a confusing login or daemon error later on.
"""

import os
from typing import List, Mapping, Optional

from scripter.errors import MissingEnvironmentError

REQUIRED = ("EI_USERNAME", "EI_PASSWORD", "EI_PROJECTNAME", "EI_HMACKEY", "EI_TESTWIFI")
WIFI_REQUIRED = ("SELENIUM_WIFI_SSID", "SELENIUM_WIFI_PASSWORD")

DEFAULT_HOSTNAME = "edgeimpulse.com"
DEFAULT_DAEMON = "edge-impulse-daemon"


class Config:
    """Suite configuration."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = dict(os.environ if environ is None else environ)
        env = self.environ

        # Studio account
        self.USERNAME = env.get("EI_USERNAME")
        self.PASSWORD = env.get("EI_PASSWORD")
        self.PROJECT_NAME = env.get("EI_PROJECTNAME")
        self.HMAC_KEY = env.get("EI_HMACKEY")

        # Target host, shared by the browser and the daemon
        self.HOSTNAME = env.get("EI_HOSTNAME") or DEFAULT_HOSTNAME

        # WiFi onboarding
        self.TEST_WIFI = env.get("EI_TESTWIFI")
        self.WIFI_SSID = env.get("SELENIUM_WIFI_SSID")
        self.WIFI_PASSWORD = env.get("SELENIUM_WIFI_PASSWORD")

        self.DAEMON = env.get("EI_DAEMON") or DEFAULT_DAEMON
        self.LOG_LEVEL = env.get("LOG_LEVEL", "info")

    @property
    def studio_endpoint(self) -> str:
        return "https://studio." + self.HOSTNAME

    @property
    def wifi_enabled(self) -> bool:
        return self.TEST_WIFI == "1"

    def missing(self, names=REQUIRED) -> List[str]:
        """Names from ``names`` that are not set at all."""
        return [name for name in names if name not in self.environ]

    def require(self, *names: str) -> None:
        """Raise for the first variable in ``names`` that is not set."""
        for name in names:
            if name not in self.environ:
                raise MissingEnvironmentError(name)

    def validate(self):
        """Validate configuration and raise errors for missing required values."""
        self.require(*REQUIRED)
        if self.wifi_enabled:
            self.require(*WIFI_REQUIRED)

    def daemon_environment(self) -> dict:
        """Environment for the daemon: target host and search path only."""
        return {
            "EI_HOST": self.HOSTNAME,
            "PATH": self.environ.get("PATH", os.defpath),
        }


def get_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Get validated configuration."""
    config = Config(environ)
    config.validate()
    return config
