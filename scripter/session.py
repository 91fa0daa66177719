"""
Interactive process scripting.

Spawns a command-line program, watches its combined stdout/stderr for prompt
substrings and answers them on stdin. A reader thread only moves raw chunks
from the pipe onto a queue; triggers, the transcript and exit hooks are all
handled on the thread that drives the session, whenever it pumps the queue
(``pump`` or ``wait_for``).

Usage:
    with InteractiveSession.spawn("edge-impulse-daemon", ["--clean"], env) as session:
        session.on_line("What is your user name", lambda _: session.write("me\\n"))
        session.on_line("Authenticated", lambda _: done.append(True))
        session.wait_for(lambda: done, timeout=20, timeout_message="Failed to connect")
"""

from __future__ import annotations

import codecs
import logging
import queue
import signal
import subprocess
import threading
from typing import Callable, Dict, List, Optional, Sequence

from scripter.errors import FatalPromptError, SessionError, SpawnError
from scripter.triggers import LineTrigger, TriggerSet
from scripter.waiting import DEFAULT_INTERVAL, wait_for_condition

logger = logging.getLogger(__name__)

READ_SIZE = 4096
REAP_TIMEOUT = 5.0

# Marks the end of the output stream on the channel.
_EOF = None


class InteractiveSession:
    """One spawned child process and the triggers scripting it."""

    def __init__(self, process: subprocess.Popen, name: str = ""):
        self.process = process
        self.name = name or str(process.args)
        self.transcript = ""
        self.sent: List[str] = []
        self.triggers = TriggerSet()

        self._channel: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._exit_hooks: List[Callable[[int], None]] = []
        self._stream_closed = False
        self._exit_reported = False

        self._reader = threading.Thread(
            target=self._read_output,
            name=f"scripter-reader-{process.pid}",
            daemon=True,
        )
        self._reader.start()

    @classmethod
    def spawn(
        cls,
        executable: str,
        args: Sequence[str] = (),
        env: Optional[Dict[str, str]] = None,
    ) -> "InteractiveSession":
        """Start ``executable`` with ``args`` and only the variables in ``env``."""
        command = [executable, *args]
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=env,
            )
        except OSError as e:
            raise SpawnError(f"could not start {command}: {e}") from e

        logger.info("Spawned %s (pid %d)", " ".join(command), process.pid,
                    extra={"pid": process.pid})
        return cls(process, name=executable)

    def __enter__(self) -> "InteractiveSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Reader thread

    def _read_output(self) -> None:
        stream = self.process.stdout
        try:
            while True:
                data = stream.read1(READ_SIZE)
                if not data:
                    break
                self._channel.put(data)
        except (OSError, ValueError):
            # Pipe closed underneath us during close()
            pass
        finally:
            self._channel.put(_EOF)

    # Driving thread

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self.process.poll()

    @property
    def exited(self) -> bool:
        return self._exit_reported

    @property
    def running(self) -> bool:
        return self.process.poll() is None

    def on_line(self, pattern: str, callback: Callable[[str], None], priority: int = 0) -> LineTrigger:
        """Register a one-shot trigger on the combined output stream.

        Registering the same pattern twice yields two independent triggers.
        """
        return self.triggers.add(pattern, callback, priority=priority)

    def on_exit(self, callback: Callable[[int], None]) -> None:
        """Call ``callback(returncode)`` once output has ended and the child exited."""
        self._exit_hooks.append(callback)
        if self._exit_reported:
            callback(self.process.returncode)

    def write(self, text: str) -> None:
        """Write ``text`` to the child's stdin right away."""
        stdin = self.process.stdin
        if stdin is None or stdin.closed:
            raise SessionError(f"stdin of {self.name} is closed, cannot write {text!r}")
        try:
            stdin.write(text.encode("utf-8"))
            stdin.flush()
        except (BrokenPipeError, ValueError) as e:
            raise SessionError(
                f"{self.name} stopped reading input, cannot write {text!r}\n{self.transcript}"
            ) from e

        self.sent.append(text)
        logger.debug("Sent %r", text)

    def pump(self, block_for: float = 0.0) -> int:
        """Dispatch pending output; wait up to ``block_for`` seconds for the first chunk.

        Returns the number of chunks handled.
        """
        handled = 0
        timeout = block_for
        while True:
            try:
                if timeout > 0:
                    data = self._channel.get(timeout=timeout)
                else:
                    data = self._channel.get_nowait()
            except queue.Empty:
                break
            timeout = 0

            if data is _EOF:
                self._handle_eof()
                break

            self._handle_chunk(self._decoder.decode(data))
            handled += 1

        if self._stream_closed and not self._exit_reported:
            self._report_exit()
        return handled

    def _handle_chunk(self, chunk: str) -> None:
        if not chunk:
            return
        logger.debug("%s: %s", self.name, chunk.rstrip("\n"), extra={"pid": self.pid})
        self.transcript += chunk
        self.triggers.feed(chunk)

    def _handle_eof(self) -> None:
        self._stream_closed = True
        self._handle_chunk(self._decoder.decode(b"", final=True))

    def _report_exit(self) -> None:
        if self.process.poll() is None:
            return
        self._exit_reported = True
        logger.info("%s exited with %s", self.name, self.process.returncode,
                    extra={"pid": self.pid})
        for hook in self._exit_hooks:
            hook(self.process.returncode)

    def wait_for(
        self,
        predicate: Callable[[], object],
        timeout: float,
        timeout_message: str,
        failure: Optional[Callable[[], Optional[str]]] = None,
        interval: float = DEFAULT_INTERVAL,
    ):
        """Pump output until ``predicate`` holds.

        ``failure`` is checked after every pump; a non-empty return value
        aborts the wait with ``FatalPromptError``.
        """

        def check():
            if failure is not None:
                reason = failure()
                if reason:
                    raise FatalPromptError(f"{reason}\n{self.transcript}")
            return predicate()

        self.pump()
        return wait_for_condition(
            check,
            timeout=timeout,
            timeout_message=timeout_message,
            context=lambda: self.transcript,
            tick=self.pump,
            interval=interval,
        )

    def wait_for_exit(self, timeout: float, timeout_message: str = ""):
        return self.wait_for(
            lambda: self.exited,
            timeout=timeout,
            timeout_message=timeout_message or f"{self.name} should have exited",
        )

    def terminate(self, sig: int = signal.SIGINT) -> None:
        """Ask the child to stop; does not wait for it."""
        if self.process.poll() is not None:
            return
        logger.info("Sending %s to %s", signal.Signals(sig).name, self.name,
                    extra={"pid": self.pid})
        self.process.send_signal(sig)

    def close(self, grace: float = REAP_TIMEOUT) -> None:
        """Signal the child if it still runs, reap it and release the pipes."""
        self.terminate()
        try:
            self.process.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            logger.warning("%s ignored SIGINT, killing", self.name, extra={"pid": self.pid})
            self.process.kill()
            self.process.wait()

        if self.process.stdin is not None and not self.process.stdin.closed:
            try:
                self.process.stdin.close()
            except BrokenPipeError:
                pass
        self._reader.join(timeout=grace)
        # Remaining output only goes to the transcript.
        self.triggers.clear()
        self.pump()
        # A grandchild may still hold the pipe; closing it would block on the reader.
        if self.process.stdout is not None and not self._reader.is_alive():
            self.process.stdout.close()


__all__ = ["InteractiveSession"]
