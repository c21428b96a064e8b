"""
Caller-facing entry point for the bash tool.

BashController decides, per request, whether to reuse, create, stop or
replace the caller's shell session, screens commands through the
CommandGate, and turns results into text blocks.
"""

from typing import Iterable, Optional

from shellkeep.config import SessionConfig
from shellkeep.errors import (
    BannedCommand,
    NoCommandProvided,
    NotStarted,
    ShellSessionError,
)
from shellkeep.gate import CommandGate
from shellkeep.logger import get_logger
from shellkeep.models import BashRequest, BashResponse
from shellkeep.session import (
    CommandResult,
    SessionRegistry,
    ShellSession,
    is_dead,
)

logger = get_logger(__name__)

RESTARTED = "tool has been restarted"
STOPPED = "session has been stopped"
NO_SESSION_TO_STOP = "no session to stop"


class BashController:
    """
    Runs bash tool requests against per-caller persistent sessions.

    Args:
        config: Settings for every session this controller spawns.
        extra_banned: Commands banned on top of the defaults and
            ``config.banned_commands``.
        registry: Session registry; a fresh one by default.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        extra_banned: Optional[Iterable[str]] = None,
        registry: Optional[SessionRegistry] = None,
    ):
        self.config = config or SessionConfig()
        self.gate = CommandGate([*self.config.banned_commands, *(extra_banned or [])])
        self.registry = registry or SessionRegistry()

    @property
    def banned_commands(self) -> list[str]:
        return list(self.gate.banned)

    async def bash(self, request: Optional[BashRequest] = None, **fields) -> BashResponse:
        """
        Handle one bash tool call.

        Raises:
            NoCommandProvided: the request has no command, restart or stop.
        """
        if request is None:
            request = BashRequest(**fields)
        session_id = request.session_id

        if request.restart:
            return await self.restart(session_id)

        if request.command:
            try:
                self.gate.check(request.command)
            except BannedCommand as e:
                logger.warning(f"Refused banned command: {request.command!r}")
                return BashResponse.of(str(e), f"banned commands: {', '.join(e.banned)}")

        session = self.registry.get(session_id)
        if is_dead(session):
            if request.stop and not request.command:
                return BashResponse.of(NO_SESSION_TO_STOP)
            session = await self._replace(session_id, session)

        if request.command:
            try:
                result = await session.run(request.command)
            except ShellSessionError as e:
                logger.error(f"Command failed in session '{session_id}': {e}")
                result = CommandResult(output=None, error_output=str(e))

            if request.stop:
                await self.registry.discard(session_id)
            return self.render(result)

        if request.stop:
            await self.registry.discard(session_id)
            return BashResponse.of(STOPPED)

        raise NoCommandProvided()

    async def restart(self, session_id: str = "default") -> BashResponse:
        """Stop whatever session the caller has and start a fresh one."""
        await self.registry.discard(session_id)
        session = ShellSession(self.config, session_id=session_id)
        await session.start()
        self.registry.register(session)
        logger.info(f"Session '{session_id}' restarted")
        return BashResponse.of(RESTARTED)

    async def shutdown(self) -> None:
        """Stop all sessions."""
        await self.registry.stop_all()

    @staticmethod
    def render(result: CommandResult) -> BashResponse:
        """
        Primary block: trimmed stdout, or trimmed stderr when stdout is blank.
        A second ``error:`` block carries stderr whenever there is any.
        """
        output = (result.output or "").strip()
        error_output = result.error_output or ""
        texts = [output or error_output.strip()]
        if error_output:
            texts.append(f"error: {error_output}")
        return BashResponse.of(*texts)

    async def _replace(
        self, session_id: str, dead: Optional[ShellSession]
    ) -> ShellSession:
        if dead is not None:
            logger.info(f"Replacing dead session '{session_id}'")
            self.registry.remove(session_id)
            try:
                await dead.stop()
            except NotStarted:
                pass

        session = ShellSession(self.config, session_id=session_id)
        await session.start(force=True)
        self.registry.register(session)
        return session
