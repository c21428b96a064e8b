"""
The spawned shell process and its three pipes.

ShellProcess only knows how to start, feed, signal and stop the shell. Output
is pumped by two reader tasks into a sink (normally a SentinelFramer) which
gets ``feed_stdout``/``feed_stderr`` calls with decoded text and a single
``feed_exit`` call when stdout reaches EOF.
"""

import asyncio
import codecs
import contextlib
import os
import signal
from typing import Optional, Protocol

from shellkeep.errors import AlreadyStarted, NotStarted, StreamUnavailable
from shellkeep.logger import get_logger

logger = get_logger(__name__)

READ_CHUNK = 4096
GRACE_PERIOD = 0.1  # seconds between shutdown steps
EXIT_WAIT = 1.0  # how long stop() waits for the shell to go away


class StreamSink(Protocol):
    def feed_stdout(self, text: str) -> None: ...

    def feed_stderr(self, text: str) -> None: ...

    def feed_exit(self, returncode: Optional[int]) -> None: ...


class ShellProcess:
    """A long-lived shell in its own process group."""

    def __init__(
        self,
        shell: str,
        sink: Optional[StreamSink] = None,
        lifetime: Optional[float] = None,
    ):
        self.shell = shell
        self.sink = sink
        self.lifetime = lifetime
        self.proc: Optional[asyncio.subprocess.Process] = None
        self.started = False
        self._readers: list[asyncio.Task] = []
        self._watchdog: Optional[asyncio.TimerHandle] = None

    @property
    def pid(self) -> Optional[int]:
        return self.proc.pid if self.proc else None

    @property
    def returncode(self) -> Optional[int]:
        return self.proc.returncode if self.proc else None

    @property
    def running(self) -> bool:
        return self.proc is not None and self.proc.returncode is None

    async def start(self, force: bool = False) -> None:
        """Spawn the shell.

        Raises:
            AlreadyStarted: the shell is running and ``force`` is False.
        """
        if self.started and not force:
            raise AlreadyStarted()
        if self.started and force:
            await self.stop()

        # Blank prompt so an interactive-ish shell never echoes PS1 into output.
        env = {**os.environ, "PS1": ""}
        self.proc = await asyncio.create_subprocess_exec(
            self.shell,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
            start_new_session=True,
        )
        self.started = True

        self._readers = [
            asyncio.create_task(self._pump(self.proc, "stdout")),
            asyncio.create_task(self._pump(self.proc, "stderr")),
        ]
        if self.lifetime:
            loop = asyncio.get_running_loop()
            self._watchdog = loop.call_later(self.lifetime, self._expire)

        logger.info(f"Started shell {self.shell} (pid={self.proc.pid})")

    async def write(self, text: str) -> None:
        """Write to the shell's stdin and wait for the pipe to drain."""
        if self.proc is None:
            raise NotStarted()
        if self.proc.stdin is None:
            raise StreamUnavailable("stdin")
        self.proc.stdin.write(text.encode("utf-8"))
        await self.proc.stdin.drain()

    def check_streams(self) -> None:
        """Raise StreamUnavailable if any of the three pipes is missing."""
        if self.proc is None:
            raise NotStarted()
        for name in ("stdin", "stdout", "stderr"):
            if getattr(self.proc, name) is None:
                raise StreamUnavailable(name)

    def signal_group(self, sig: int) -> bool:
        """Send ``sig`` to the shell's process group. Best-effort."""
        if not self.running:
            return False
        try:
            os.killpg(os.getpgid(self.proc.pid), sig)
            return True
        except (ProcessLookupError, PermissionError) as e:
            logger.debug(f"Could not signal process group of {self.proc.pid}: {e}")
            return False

    async def stop(self) -> None:
        """Ask the shell to exit, tear down the pipes, kill it if it resists.

        Raises:
            NotStarted: ``start()`` was never called.
        """
        if not self.started:
            raise NotStarted()

        self._cancel_watchdog()
        proc = self.proc

        if proc is not None and proc.returncode is None:
            try:
                proc.stdin.write(b"exit\n")
                await asyncio.sleep(GRACE_PERIOD)
                proc.stdin.close()
                await asyncio.sleep(GRACE_PERIOD)
                self._detach()
                await asyncio.wait_for(proc.wait(), EXIT_WAIT)
            except Exception as e:
                logger.warning(f"Graceful shutdown of pid {proc.pid} failed ({e!r}), killing")
                self._detach()
                self._kill(proc)
                self._close_stdin(proc)
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(proc.wait(), EXIT_WAIT)
            await asyncio.sleep(GRACE_PERIOD)
        else:
            self._detach()
            if proc is not None:
                self._close_stdin(proc)

        self.started = False
        self.proc = None
        logger.info("Shell stopped")

    # ─── Internals ───────────────────────────────────────────────────

    async def _pump(self, proc: asyncio.subprocess.Process, name: str) -> None:
        stream = getattr(proc, name)
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await stream.read(READ_CHUNK)
            final = not data
            text = decoder.decode(data, final=final)
            if text and self.sink is not None:
                if name == "stdout":
                    self.sink.feed_stdout(text)
                else:
                    self.sink.feed_stderr(text)
            if final:
                break

        if name == "stdout":
            returncode = await proc.wait()
            logger.info(f"Shell output closed (returncode={returncode})")
            if self.sink is not None:
                self.sink.feed_exit(returncode)

    def _detach(self) -> None:
        for task in self._readers:
            task.cancel()
        self._readers = []

    def _close_stdin(self, proc: asyncio.subprocess.Process) -> None:
        if proc.stdin is not None:
            with contextlib.suppress(OSError):
                proc.stdin.close()

    def _kill(self, proc: asyncio.subprocess.Process) -> None:
        try:
            os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            try:
                proc.kill()
            except ProcessLookupError:
                pass

    def _expire(self) -> None:
        self._watchdog = None
        if self.running:
            logger.info(
                f"Shell pid {self.proc.pid} reached its {self.lifetime:g}s lifetime, terminating"
            )
            self.signal_group(signal.SIGTERM)

    def _cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None
