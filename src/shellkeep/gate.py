"""
Banned-command filter applied before anything reaches the shell.
"""

from typing import Iterable, Optional

from shellkeep.config import DEFAULT_BANNED_COMMANDS
from shellkeep.errors import BannedCommand


def merge_banned(extra: Optional[Iterable[str]] = None) -> list[str]:
    """Defaults plus ``extra``, in order, without duplicates."""
    merged = list(DEFAULT_BANNED_COMMANDS)
    for cmd in extra or ():
        if cmd and cmd not in merged:
            merged.append(cmd)
    return merged


class CommandGate:
    """
    Rejects a command line if any whitespace-separated token is exactly a
    banned command. ``curl`` is caught, ``curling`` and ``/usr/bin/curl``
    are not.
    """

    def __init__(self, extra_banned: Optional[Iterable[str]] = None):
        self.banned = merge_banned(extra_banned)
        self._banned_set = frozenset(self.banned)

    def offending(self, command: str) -> list[str]:
        """Banned tokens found in ``command``."""
        return [tok for tok in command.split() if tok in self._banned_set]

    def check(self, command: str) -> None:
        """Raise BannedCommand if ``command`` contains a banned token."""
        if self.offending(command):
            raise BannedCommand(command, self.banned)
