from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScripterError(Exception):
    """Standard error raised while scripting the daemon or the studio UI.

    Parameters
    ----------
    code:
        Short machine readable error code.
    message:
        Human readable error message, including any transcript or URL
        needed to diagnose the failure without re-running.
    """

    code: str
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code}: {self.message}"


class MissingEnvironmentError(ScripterError):
    """A required environment variable is not set."""

    def __init__(self, name: str):
        super().__init__("missing_env", f"{name} should be set")
        self.name = name


class SpawnError(ScripterError):
    def __init__(self, message: str):
        super().__init__("spawn_failed", message)


class SessionError(ScripterError):
    def __init__(self, message: str):
        super().__init__("session_closed", message)


class FatalPromptError(ScripterError):
    """The child process reported a connection or hardware failure."""

    def __init__(self, message: str):
        super().__init__("fatal_prompt", message)


class ConvergenceTimeout(ScripterError):
    """A polled condition never became true."""

    def __init__(self, message: str):
        super().__init__("timeout", message)


__all__ = [
    "ScripterError",
    "MissingEnvironmentError",
    "SpawnError",
    "SessionError",
    "FatalPromptError",
    "ConvergenceTimeout",
]
