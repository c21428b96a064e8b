"""
One persistent shell session: a ShellProcess, its SentinelFramer, and the
rules for running a single command at a time against a deadline.
"""

import asyncio
import signal
from datetime import datetime
from typing import Optional

from shellkeep.config import SessionConfig
from shellkeep.errors import (
    AlreadyStarted,
    NotStarted,
    ProcessExited,
    SessionBusy,
    SessionTimedOut,
)
from shellkeep.logger import get_logger
from shellkeep.session.framer import CommandResult, SentinelFramer
from shellkeep.session.process import ShellProcess

logger = get_logger(__name__)


class ShellSession:
    """
    A shell whose state (cwd, variables, jobs) survives between commands.

    Only one command may be in flight. A command that overruns
    ``config.timeout`` marks the session as timed out for good; every later
    ``run`` fails until the session is replaced.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        session_id: str = "default",
    ):
        self.config = config or SessionConfig()
        self.session_id = session_id
        self.framer = self._new_framer()
        self.process = ShellProcess(
            self.config.shell,
            sink=self.framer,
            lifetime=self.config.process_lifetime,
        )
        self.active = False
        self.timed_out = False
        self.commands_run = 0
        self.created_at: datetime = datetime.now()

    def _new_framer(self) -> SentinelFramer:
        return SentinelFramer(self.config.sentinel, self.config.output_delay)

    @property
    def started(self) -> bool:
        return self.process.started

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode

    async def start(self, force: bool = False) -> None:
        """Spawn the shell; ``force`` replaces a running one."""
        if self.process.started:
            if not force:
                raise AlreadyStarted()
            await self.stop()
        self.framer = self._new_framer()
        self.process.sink = self.framer
        await self.process.start(force=force)
        self.timed_out = False
        logger.info(f"Session '{self.session_id}' started")

    async def stop(self) -> None:
        """Stop the shell. Raises NotStarted if it was never started."""
        self.framer.close()
        await self.process.stop()
        self.active = False
        logger.info(f"Session '{self.session_id}' stopped")

    async def run(self, command: str) -> CommandResult:
        """
        Run one command and return what it printed.

        Raises:
            NotStarted: no live shell.
            SessionBusy: another command is still running.
            SessionTimedOut: this or an earlier command overran the timeout.
            ProcessExited: the shell is gone and the session must be replaced.
            StreamUnavailable: one of the shell's pipes is missing.
        """
        if not self.process.started or self.process.proc is None:
            raise NotStarted()
        if self.active:
            raise SessionBusy()
        if self.timed_out:
            raise SessionTimedOut(self.config.timeout)
        if self.process.returncode is not None:
            raise ProcessExited(self.process.returncode)
        self.process.check_streams()

        self.active = True
        completion = self.framer.begin()
        try:
            try:
                await self.process.write(self.framer.frame(command))
            except (BrokenPipeError, ConnectionResetError):
                raise ProcessExited(self.process.returncode) from None

            result = await asyncio.wait_for(completion, self.config.timeout)
            self.commands_run += 1
            return result
        except asyncio.TimeoutError:
            self.timed_out = True
            logger.warning(
                f"Session '{self.session_id}' timed out after {self.config.timeout:g}s"
            )
            if self.config.interrupt_on_timeout:
                self.process.signal_group(signal.SIGINT)
            raise SessionTimedOut(self.config.timeout) from None
        finally:
            self.framer.detach()
            self.active = False
