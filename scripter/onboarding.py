"""
Daemon onboarding script.

Drives ``edge-impulse-daemon --clean`` through its interactive prompts:
log in, clear the stored configuration, pick the project, name the device and
either decline or configure WiFi. The prompt sequence is modelled as a state
machine; each prompt is a one-shot trigger whose callback performs one
transition, so a prompt that was already answered cannot be answered twice.

Usage:
    config = get_config()
    with InteractiveSession.spawn(config.DAEMON, daemon_args(), config.daemon_environment()) as session:
        onboarding = DaemonOnboarding(session, Credentials.from_config(config), "my-device")
        onboarding.start()
        onboarding.wait_until_cleared()
        onboarding.select_project()
        onboarding.wait_until_connected()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from scripter.config import Config
from scripter.errors import FatalPromptError
from scripter.session import InteractiveSession

logger = logging.getLogger(__name__)

# Prompts
USERNAME_PROMPT = "What is your user name"
PASSWORD_PROMPT = "What is your password?"
CLEARED_MARKER = "Clearing configuration OK"
DEVICE_NAME_PROMPT = "What name do you want to give this device?"
WIFI_PROMPT = "WiFi is not connected, do you want to set up a WiFi network now?"
SELECT_NETWORK_PROMPT = "Select WiFi network "
NETWORK_PASSWORD_PROMPT = "Enter password for network"
AUTHENTICATED_MARKER = "Authenticated"
WIFI_CONNECTED_MARKER = "Device is connected over WiFi to remote management API"

FATAL_MARKERS = (
    "Failed to connect to",
    "Could not find any devices connected over serial port",
    "but failed to read config",
)

ARROW_DOWN = "\x1b[B"

# Networks visible at once in the daemon's selection list
WIFI_PAGE_SIZE = 7

CLEAR_TIMEOUT = 20.0
CONNECT_TIMEOUT = 20.0
EXIT_TIMEOUT = 20.0


class DaemonState(str, Enum):
    """Position in the daemon's prompt sequence."""

    SPAWNED = "spawned"
    USERNAME = "username"
    PASSWORD = "password"
    CLEARED = "cleared"
    PROJECT_SELECTED = "project_selected"
    NAMED = "named"
    WIFI_PROMPTED = "wifi_prompted"
    SELECTING_NETWORK = "selecting_network"
    NETWORK_PASSWORD = "network_password"
    CONNECTED = "connected"
    FAILED = "failed"


@dataclass
class Credentials:
    username: str
    password: str

    @classmethod
    def from_config(cls, config: Config) -> "Credentials":
        return cls(username=config.USERNAME or "", password=config.PASSWORD or "")


@dataclass
class WifiNetwork:
    ssid: str
    password: str

    @classmethod
    def from_config(cls, config: Config) -> Optional["WifiNetwork"]:
        if not config.wifi_enabled:
            return None
        return cls(ssid=config.WIFI_SSID or "", password=config.WIFI_PASSWORD or "")


@dataclass
class SessionResult:
    """What happened during one scripted daemon session."""

    state: DaemonState = DaemonState.SPAWNED
    history: List[DaemonState] = field(default_factory=lambda: [DaemonState.SPAWNED])
    cleared_config: bool = False
    connected: bool = False
    exited: bool = False
    returncode: Optional[int] = None
    fatal_message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.fatal_message is not None


def daemon_args(clean: bool = True) -> List[str]:
    return ["--clean"] if clean else []


def network_offset(chunk: str, ssid: str) -> int:
    """Number of rows to move down from the first network to reach ``ssid``.

    ``chunk`` is the output containing the network list, one ``SSID: ...``
    row per network.
    """
    networks = [line for line in chunk.split("\n") if "SSID" in line]
    target = "SSID: " + ssid
    for index, line in enumerate(networks):
        if target in line:
            if len(networks) > WIFI_PAGE_SIZE:
                # TODO: page through the list once the daemon's scrolling behaviour is pinned down
                logger.warning(
                    "%d networks listed, more than the %d visible rows; selection may scroll",
                    len(networks), WIFI_PAGE_SIZE,
                )
            return index
    raise FatalPromptError(f"WiFi network {ssid!r} not offered by the daemon:\n{chunk}")


class DaemonOnboarding:
    """Answers the daemon's onboarding prompts for one session."""

    def __init__(
        self,
        session: InteractiveSession,
        credentials: Credentials,
        device_name: str,
        wifi: Optional[WifiNetwork] = None,
    ):
        self.session = session
        self.credentials = credentials
        self.device_name = device_name
        self.wifi = wifi
        self.result = SessionResult()

    def _transition(self, state: DaemonState) -> None:
        if self.result.failed:
            return
        logger.info("Daemon %s -> %s", self.result.state.value, state.value,
                    extra={"state": state.value})
        self.result.state = state
        self.result.history.append(state)

    def _respond(self, text: str, state: DaemonState) -> None:
        if self.result.failed:
            logger.info("Not answering %s after a fatal prompt", state.value)
            return
        self._transition(state)
        self.session.write(text)

    def start(self) -> None:
        """Register the triggers for the prompts up to the cleared configuration."""
        s = self.session
        s.on_exit(self._on_exit)

        for marker in FATAL_MARKERS:
            s.on_line(marker, self._on_fatal, priority=1)

        s.on_line(USERNAME_PROMPT, lambda _: self._respond(
            self.credentials.username + "\n", DaemonState.USERNAME))
        s.on_line(PASSWORD_PROMPT, lambda _: self._respond(
            self.credentials.password + "\n", DaemonState.PASSWORD))
        s.on_line(CLEARED_MARKER, self._on_cleared)

    def select_project(self) -> None:
        """Confirm the default project, then register the remaining prompts."""
        if not self.result.cleared_config:
            raise FatalPromptError(
                f"project selection before the configuration was cleared\n{self.session.transcript}")

        s = self.session
        s.on_line(DEVICE_NAME_PROMPT, lambda _: self._respond(
            self.device_name + "\n", DaemonState.NAMED))
        s.on_line(WIFI_PROMPT, lambda _: self._respond(
            "y\n" if self.wifi else "n\n", DaemonState.WIFI_PROMPTED))
        if self.wifi:
            s.on_line(SELECT_NETWORK_PROMPT, self._on_network_list)
            s.on_line(NETWORK_PASSWORD_PROMPT, lambda _: self._respond(
                self.wifi.password + "\n", DaemonState.NETWORK_PASSWORD))
            s.on_line(WIFI_CONNECTED_MARKER, self._on_connected)
        else:
            s.on_line(AUTHENTICATED_MARKER, self._on_connected)

        self._respond("\n", DaemonState.PROJECT_SELECTED)

    def _on_fatal(self, chunk: str) -> None:
        if self.result.failed:
            return
        logger.error("Daemon reported a failure: %s", chunk.strip())
        self.result.state = DaemonState.FAILED
        self.result.history.append(DaemonState.FAILED)
        self.result.fatal_message = chunk

    def _on_cleared(self, _chunk: str) -> None:
        if self.result.failed:
            return
        self._transition(DaemonState.CLEARED)
        self.result.cleared_config = True

    def _on_network_list(self, chunk: str) -> None:
        if self.result.failed:
            return
        try:
            offset = network_offset(chunk, self.wifi.ssid)
        except FatalPromptError as e:
            self._on_fatal(e.message)
            return

        self._transition(DaemonState.SELECTING_NETWORK)
        for _ in range(offset):
            self.session.write(ARROW_DOWN)
        self.session.write("\n")

    def _on_connected(self, _chunk: str) -> None:
        if self.result.failed:
            return
        self._transition(DaemonState.CONNECTED)
        self.result.connected = True

    def _on_exit(self, returncode: int) -> None:
        self.result.exited = True
        self.result.returncode = returncode

    def _failure(self) -> Optional[str]:
        return self.result.fatal_message

    def wait_until_cleared(self, timeout: float = CLEAR_TIMEOUT) -> SessionResult:
        self.session.wait_for(
            lambda: self.result.cleared_config,
            timeout=timeout,
            timeout_message="Failed to clear config",
            failure=self._failure,
        )
        return self.result

    def wait_until_connected(self, timeout: float = CONNECT_TIMEOUT) -> SessionResult:
        self.session.wait_for(
            lambda: self.result.connected,
            timeout=timeout,
            timeout_message="Failed to connect",
            failure=self._failure,
        )
        return self.result

    def wait_until_exited(self, timeout: float = EXIT_TIMEOUT) -> SessionResult:
        self.session.wait_for(
            lambda: self.result.exited,
            timeout=timeout,
            timeout_message="Daemon should have exited",
            failure=self._failure,
        )
        return self.result


__all__ = [
    "DaemonState",
    "Credentials",
    "WifiNetwork",
    "SessionResult",
    "DaemonOnboarding",
    "daemon_args",
    "network_offset",
    "FATAL_MARKERS",
    "ARROW_DOWN",
    "WIFI_PAGE_SIZE",
]
