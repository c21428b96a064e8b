"""
Pydantic models for the bash tool request/response contract.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class BashRequest(BaseModel):
    """Caller → controller: run a command, restart, or stop."""

    command: Optional[str] = Field(
        default=None, description="The bash command to be executed."
    )
    restart: Optional[bool] = Field(
        default=None,
        description="When true, the bash session will be restarted. "
        "Any provided commands will be ignored.",
    )
    stop: Optional[bool] = Field(
        default=None,
        description="When true, the bash session will be stopped. Any provided "
        "commands will be executed before the session is stopped.",
    )
    session_id: str = Field(
        default="default", description="Caller identifier selecting the session."
    )


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class BashResponse(BaseModel):
    """Controller → caller: ordered text blocks."""

    content: list[TextContent] = Field(default_factory=list)

    @classmethod
    def of(cls, *texts: str) -> "BashResponse":
        return cls(content=[TextContent(text=t) for t in texts])

    @property
    def text(self) -> str:
        """The primary block, or an empty string."""
        return self.content[0].text if self.content else ""
