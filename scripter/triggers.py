"""One-shot substring triggers over a child process's output stream."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Callable, List

logger = logging.getLogger(__name__)

_sequence = count()


@dataclass
class LineTrigger:
    """A registered (pattern, callback) pair.

    ``pattern`` is matched as a plain substring, never as a regex.
    ``callback`` receives the whole chunk that contained the match.
    """

    pattern: str
    callback: Callable[[str], None]
    priority: int = 0
    fired: bool = False
    seq: int = field(default_factory=lambda: next(_sequence))

    def matches(self, chunk: str) -> bool:
        return not self.fired and self.pattern in chunk


class TriggerSet:
    """Active one-shot triggers for one session.

    A trigger is removed from the set before its callback runs, so a
    callback that feeds more output (or a pattern that reappears later)
    can never fire it again.
    """

    def __init__(self):
        self._active: List[LineTrigger] = []

    def __len__(self) -> int:
        return len(self._active)

    @property
    def patterns(self) -> List[str]:
        return [t.pattern for t in self._active]

    def add(self, pattern: str, callback: Callable[[str], None], priority: int = 0) -> LineTrigger:
        if not pattern:
            raise ValueError("trigger pattern must not be empty")
        trigger = LineTrigger(pattern=pattern, callback=callback, priority=priority)
        self._active.append(trigger)
        return trigger

    def feed(self, chunk: str) -> List[LineTrigger]:
        """Fire every active trigger whose pattern occurs in ``chunk``.

        Higher priority triggers run first. Every matched callback runs even
        if an earlier one raises; the first error is re-raised afterwards.
        Returns the fired triggers.
        """
        matched = [t for t in self._active if t.matches(chunk)]
        if not matched:
            return []

        for trigger in matched:
            trigger.fired = True
        self._active = [t for t in self._active if not t.fired]

        matched.sort(key=lambda t: (-t.priority, t.seq))
        error = None
        for trigger in matched:
            logger.info("Matched %r", trigger.pattern, extra={"pattern": trigger.pattern})
            try:
                trigger.callback(chunk)
            except Exception as e:
                logger.error("Callback for %r failed: %s", trigger.pattern, e,
                             extra={"pattern": trigger.pattern})
                if error is None:
                    error = e
        if error is not None:
            raise error
        return matched

    def clear(self) -> None:
        self._active.clear()


__all__ = ["LineTrigger", "TriggerSet"]
