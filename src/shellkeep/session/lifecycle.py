"""
Session lifecycle states.

A session moves NO_SESSION -> READY -> PENDING -> READY ... and ends up DEAD
when its shell exits, or TIMED_OUT after a command overruns its deadline.
The controller replaces DEAD sessions on the next request; TIMED_OUT ones
need an explicit restart.
"""

from enum import Enum
from typing import Optional

from shellkeep.session.session import ShellSession


class SessionState(str, Enum):
    NO_SESSION = "no_session"
    READY = "ready"
    PENDING = "pending"
    TIMED_OUT = "timed_out"
    DEAD = "dead"


def is_dead(session: Optional[ShellSession]) -> bool:
    """
    A session is dead when it is absent, was never started, has lost its
    process handle, or its process has exited (including being killed).
    """
    if session is None or not session.started:
        return True
    if session.process.proc is None:
        return True
    return session.returncode is not None


def session_state(session: Optional[ShellSession]) -> SessionState:
    """Classify a session for status reporting."""
    if session is None:
        return SessionState.NO_SESSION
    if is_dead(session):
        return SessionState.DEAD
    if session.timed_out:
        return SessionState.TIMED_OUT
    if session.active:
        return SessionState.PENDING
    return SessionState.READY
