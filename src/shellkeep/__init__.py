"""
shellkeep: run shell commands in a long-lived shell session.

Usage:
    from shellkeep import BashController

    controller = BashController()
    response = await controller.bash(command="cd /tmp")
    response = await controller.bash(command="pwd")   # -> "/tmp"
    await controller.bash(stop=True)
"""

from shellkeep.config import SessionConfig
from shellkeep.controller import BashController
from shellkeep.errors import (
    AlreadyStarted,
    BannedCommand,
    NoCommandProvided,
    NotStarted,
    ProcessExited,
    SessionBusy,
    SessionTimedOut,
    ShellSessionError,
    StreamUnavailable,
)
from shellkeep.gate import CommandGate
from shellkeep.models import BashRequest, BashResponse, TextContent
from shellkeep.session import CommandResult, SessionRegistry, ShellSession

__version__ = "0.1.0"

__all__ = [
    "AlreadyStarted",
    "BannedCommand",
    "BashController",
    "BashRequest",
    "BashResponse",
    "CommandGate",
    "CommandResult",
    "NoCommandProvided",
    "NotStarted",
    "ProcessExited",
    "SessionBusy",
    "SessionConfig",
    "SessionRegistry",
    "SessionTimedOut",
    "ShellSession",
    "ShellSessionError",
    "StreamUnavailable",
    "TextContent",
]
