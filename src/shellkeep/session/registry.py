"""
Registry of live shell sessions, keyed by caller id.
"""

from typing import Any, Optional

from shellkeep.errors import NotStarted
from shellkeep.logger import get_logger
from shellkeep.session.lifecycle import session_state
from shellkeep.session.session import ShellSession

logger = get_logger(__name__)


class SessionRegistry:
    """
    Owns the mapping from caller id to ShellSession.

    Nothing else decides which session is current for an id, so the only
    per-session guard needed is the session's own ``active`` flag.
    """

    def __init__(self):
        self.sessions: dict[str, ShellSession] = {}

    def get(self, session_id: str) -> Optional[ShellSession]:
        return self.sessions.get(session_id)

    def register(self, session: ShellSession) -> None:
        """
        Make ``session`` the current session for its id.

        Args:
            session: The session to register. Any previous session under the
                same id must already be stopped.
        """
        logger.debug(f"Registering session '{session.session_id}'")
        self.sessions[session.session_id] = session

    def remove(self, session_id: str) -> Optional[ShellSession]:
        """Forget a session without stopping it. Returns it if it was known."""
        return self.sessions.pop(session_id, None)

    async def discard(self, session_id: str) -> bool:
        """
        Stop and forget a session.

        Returns:
            True if a session was registered under ``session_id``.
        """
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        try:
            await session.stop()
        except NotStarted:
            pass
        return True

    async def stop_all(self) -> None:
        """Stop every registered session (used at shutdown)."""
        for session_id in list(self.sessions):
            await self.discard(session_id)

    def list_sessions(self) -> list[dict[str, Any]]:
        """Summaries of all registered sessions."""
        return [
            {
                "session_id": s.session_id,
                "state": session_state(s).value,
                "pid": s.process.pid,
                "commands_run": s.commands_run,
                "created_at": s.created_at.isoformat(),
            }
            for s in self.sessions.values()
        ]

    def __len__(self) -> int:
        return len(self.sessions)
