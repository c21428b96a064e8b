"""
Exceptions raised by shell sessions and the bash controller.

State-machine violations (NotStarted, AlreadyStarted, SessionBusy,
ProcessExited, SessionTimedOut) propagate to the caller. BannedCommand and
NoCommandProvided describe bad requests rather than broken sessions.
"""


class ShellSessionError(Exception):
    """Base class for every shellkeep error."""


class NotStarted(ShellSessionError):
    def __init__(self, message: str = "Session has not started"):
        super().__init__(message)


class AlreadyStarted(ShellSessionError):
    def __init__(self, message: str = "Session has already started"):
        super().__init__(message)


class SessionBusy(ShellSessionError):
    def __init__(self, message: str = "Session is already active"):
        super().__init__(message)


class ProcessExited(ShellSessionError):
    """The shell process is gone; the session must be restarted."""

    def __init__(self, returncode: int | None):
        self.returncode = returncode
        super().__init__(
            f"bash has exited with returncode {returncode}; tool must be restarted"
        )


class SessionTimedOut(ShellSessionError):
    """A command overran the deadline. Sticky until the session is replaced."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(
            f"timed out: bash has not returned in {timeout:g} seconds "
            "and must be restarted"
        )


class StreamUnavailable(ShellSessionError):
    def __init__(self, stream: str):
        self.stream = stream
        super().__init__(f"{stream} is not available")


class BannedCommand(ShellSessionError):
    """Policy rejection. The command never reached the shell."""

    def __init__(self, command: str, banned: list[str]):
        self.command = command
        self.banned = list(banned)
        super().__init__(
            f"unable to execute command {command} because it contains a banned command."
        )


class NoCommandProvided(ShellSessionError):
    def __init__(self, message: str = "no command provided."):
        super().__init__(message)
