"""
Session configuration.

Defaults can be overridden through ``SHELLKEEP_*`` environment variables
(a ``.env`` file is honoured) or by passing fields directly.
"""

import os
import shutil
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_SENTINEL = "<<exit>>"
DEFAULT_TIMEOUT = 120.0  # seconds
DEFAULT_OUTPUT_DELAY = 0.2  # seconds

DEFAULT_BANNED_COMMANDS = [
    "alias",
    "curl",
    "curlie",
    "wget",
    "axel",
    "aria2c",
    "nc",
    "telnet",
    "lynx",
    "w3m",
    "links",
    "httpie",
    "xh",
    "http-prompt",
    "chrome",
    "firefox",
    "safari",
]


def default_shell() -> str:
    """Prefer bash, fall back to the POSIX shell."""
    return shutil.which("bash") or "/bin/sh"


class SessionConfig(BaseModel):
    """Tunables for one shell session."""

    shell: str = Field(default_factory=default_shell)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    output_delay: float = Field(default=DEFAULT_OUTPUT_DELAY, ge=0)
    sentinel: str = Field(default=DEFAULT_SENTINEL, min_length=1)
    # Hard cap on the shell's lifetime; None follows `timeout`.
    process_lifetime: Optional[float] = None
    watchdog: bool = True
    interrupt_on_timeout: bool = True
    banned_commands: list[str] = Field(default_factory=list)

    @field_validator("sentinel")
    @classmethod
    def _echoable_sentinel(cls, value: str) -> str:
        # Echoed inside single quotes on one line.
        if "'" in value or "\n" in value:
            raise ValueError("sentinel must not contain single quotes or newlines")
        return value

    @model_validator(mode="after")
    def _fill_lifetime(self) -> "SessionConfig":
        if self.watchdog and self.process_lifetime is None:
            self.process_lifetime = self.timeout
        if not self.watchdog:
            self.process_lifetime = None
        return self

    @classmethod
    def from_env(cls, **overrides) -> "SessionConfig":
        """Build a config from SHELLKEEP_* variables, then apply overrides."""
        load_dotenv(find_dotenv(usecwd=True))

        values: dict = {}
        if shell := os.getenv("SHELLKEEP_SHELL"):
            values["shell"] = shell
        if timeout := os.getenv("SHELLKEEP_TIMEOUT"):
            values["timeout"] = float(timeout)
        if delay := os.getenv("SHELLKEEP_OUTPUT_DELAY"):
            values["output_delay"] = float(delay)
        if sentinel := os.getenv("SHELLKEEP_SENTINEL"):
            values["sentinel"] = sentinel
        if banned := os.getenv("SHELLKEEP_BANNED"):
            values["banned_commands"] = [
                cmd.strip() for cmd in banned.split(",") if cmd.strip()
            ]

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
