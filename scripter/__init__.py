"""Scripting interactive command-line sessions for end-to-end tests."""

from scripter.errors import (
    ConvergenceTimeout,
    FatalPromptError,
    MissingEnvironmentError,
    ScripterError,
    SessionError,
    SpawnError,
)
from scripter.session import InteractiveSession
from scripter.triggers import LineTrigger, TriggerSet
from scripter.waiting import wait_for_condition

__all__ = [
    "ConvergenceTimeout",
    "FatalPromptError",
    "InteractiveSession",
    "LineTrigger",
    "MissingEnvironmentError",
    "ScripterError",
    "SessionError",
    "SpawnError",
    "TriggerSet",
    "wait_for_condition",
]
