"""
Sentinel framing for a persistent shell.

The shell's stdout/stderr are plain byte streams with no message boundaries.
Each command is submitted as ``<command>; echo '<sentinel>'`` and the framer
watches stdout for the sentinel to know the command is done. Chunks are
delivered ``output_delay`` seconds after they arrive so trailing writes of the
same block can land first.

Stderr takes a shortcut: the first stderr chunk resolves the command one
settle delay later, without waiting for the sentinel. The stdout sentinel of
such a command still shows up afterwards; the framer counts it as *owed* and
throws away stdout up to and including it, so it never bleeds into the next
command.

Sentinel detection runs over the unconsumed tail of the stream rather than the
single chunk, so a sentinel split across two reads is still found. Only a
tail that could be the start of the sentinel is held back; everything else is
handed to the command as soon as it is delivered.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Optional

from shellkeep.errors import ProcessExited
from shellkeep.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Captured streams of one framed command. Either may be None."""

    output: Optional[str] = None
    error_output: Optional[str] = None


class SentinelFramer:
    """Turns stdout/stderr chunks into one completion per submitted command."""

    def __init__(self, sentinel: str, output_delay: float):
        self.sentinel = sentinel
        self.output_delay = output_delay
        self._pending: Optional[asyncio.Future] = None
        self._output: Optional[str] = None
        self._error_output: Optional[str] = None
        self._stdout_buf = ""
        self._owed = 0
        # Whether the open window's sentinel is settled (seen, or counted as owed).
        self._settled = True
        self._queue: deque = deque()
        self._drain_handle: Optional[asyncio.TimerHandle] = None
        self._closed = False

    # ─── Command side ────────────────────────────────────────────────

    def frame(self, command: str) -> str:
        """Wire form of a command: the command, then an echo of the sentinel."""
        return f"{command}; echo '{self.sentinel}'\n"

    def begin(self) -> asyncio.Future:
        """Open a new command window and return its completion future."""
        if self._pending is not None and not self._pending.done():
            raise RuntimeError("a framed command is already pending")
        self._pending = asyncio.get_running_loop().create_future()
        self._output = None
        self._error_output = None
        self._settled = False
        return self._pending

    def detach(self) -> None:
        """Close the current command window.

        A command abandoned before its sentinel arrived (timeout, caller
        cancellation) leaves that sentinel owed.
        """
        if self._pending is None:
            return
        if not self._settled:
            self._owe()
        self._pending = None

    def close(self) -> None:
        """Cancel outstanding settle timers and fail any pending command."""
        self._closed = True
        if self._drain_handle is not None:
            self._drain_handle.cancel()
            self._drain_handle = None
        self._queue.clear()
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    @property
    def owed(self) -> int:
        return self._owed

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    # ─── Stream side ─────────────────────────────────────────────────

    def feed_stdout(self, text: str) -> None:
        self._later(self._on_stdout, text)

    def feed_stderr(self, text: str) -> None:
        if self._closed or not self.pending:
            return
        text = text.replace(self.sentinel, "")
        self._error_output = (self._error_output or "") + text
        self._later(self._settle_stderr, self._pending)

    def feed_exit(self, returncode: Optional[int]) -> None:
        self._later(self._on_exit, returncode)

    # ─── Internals ───────────────────────────────────────────────────

    def _later(self, callback, *args) -> None:
        """Run ``callback`` one settle delay from now, after anything queued earlier."""
        if self._closed:
            return
        loop = asyncio.get_running_loop()
        self._queue.append((loop.time() + self.output_delay, callback, args))
        if self._drain_handle is None:
            self._drain_handle = loop.call_at(self._queue[0][0], self._drain)

    def _drain(self) -> None:
        self._drain_handle = None
        loop = asyncio.get_running_loop()
        # The head is due (the loop fired us for it); run it and anything else due.
        first = True
        while self._queue and (first or self._queue[0][0] <= loop.time()):
            first = False
            _, callback, args = self._queue.popleft()
            callback(*args)
            if self._closed:
                return
        if self._queue:
            self._drain_handle = loop.call_at(self._queue[0][0], self._drain)

    def _held_back(self, text: str) -> int:
        """Length of the longest suffix of ``text`` that could start a sentinel."""
        for size in range(min(len(text), len(self.sentinel) - 1), 0, -1):
            if text.endswith(self.sentinel[:size]):
                return size
        return 0

    def _on_stdout(self, text: str) -> None:
        self._stdout_buf += text

        while self._stdout_buf:
            idx = self._stdout_buf.find(self.sentinel)

            if self._owed > 0:
                if idx < 0:
                    hold = self._held_back(self._stdout_buf)
                    self._stdout_buf = self._stdout_buf[len(self._stdout_buf) - hold:]
                    return
                self._stdout_buf = self._stdout_buf[idx + len(self.sentinel):]
                self._owed -= 1
                logger.debug(f"Discarded owed sentinel (owed={self._owed})")
                continue

            if not self.pending:
                # Stray output between commands (background jobs and the like).
                self._stdout_buf = ""
                return

            if idx < 0:
                cut = len(self._stdout_buf) - self._held_back(self._stdout_buf)
                if cut:
                    self._append_output(self._stdout_buf[:cut])
                    self._stdout_buf = self._stdout_buf[cut:]
                return

            # The echo's newline after the sentinel belongs to this command.
            head = self._stdout_buf[:idx]
            tail = self._stdout_buf[idx + len(self.sentinel):]
            self._stdout_buf = ""
            self._append_output(head + tail.replace(self.sentinel, ""))
            self._settled = True
            self._resolve()
            return

    def _append_output(self, text: str) -> None:
        self._output = (self._output or "") + text

    def _settle_stderr(self, fut: asyncio.Future) -> None:
        if fut is self._pending and not fut.done():
            # Resolved ahead of the sentinel, which is still on its way. The stdout
            # buffer holds at most a possible start of that sentinel.
            self._owe()
            self._resolve()

    def _on_exit(self, returncode: Optional[int]) -> None:
        if self.pending:
            logger.warning(f"Shell exited with code {returncode} mid-command")
            self._settled = True
            self._pending.set_exception(ProcessExited(returncode))

    def _owe(self) -> None:
        self._settled = True
        self._owed += 1
        logger.debug(f"Sentinel owed by an early-resolved command (owed={self._owed})")

    def _resolve(self) -> None:
        self._pending.set_result(
            CommandResult(output=self._output, error_output=self._error_output)
        )
