"""
Persistent shell sessions.

- process:   the spawned shell and its pipes
- framer:    sentinel framing of stdout/stderr into per-command results
- session:   one-command-at-a-time execution with a deadline
- lifecycle: session states and the "dead session" test
- registry:  sessions keyed by caller id
"""

from shellkeep.session.framer import CommandResult, SentinelFramer
from shellkeep.session.lifecycle import SessionState, is_dead, session_state
from shellkeep.session.process import ShellProcess
from shellkeep.session.registry import SessionRegistry
from shellkeep.session.session import ShellSession

__all__ = [
    "CommandResult",
    "SentinelFramer",
    "SessionRegistry",
    "SessionState",
    "ShellProcess",
    "ShellSession",
    "is_dead",
    "session_state",
]
