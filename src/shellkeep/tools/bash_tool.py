"""
Bash tool for smolagents agents, backed by a BashController.
"""

import asyncio
import concurrent.futures
from typing import Optional

from smolagents.tools import Tool

from shellkeep.controller import BashController
from shellkeep.errors import NoCommandProvided
from shellkeep.logger import get_logger

logger = get_logger(__name__)

INSTRUCTIONS = """Executes a given bash command in a persistent shell session with optional timeout.

1. Security check:
   - Some commands are banned to limit prompt-injection damage. A banned command
     returns an error message explaining the restriction; explain it to the user.
   - Banned commands: {banned}.
2. Command execution:
   - Quote arguments properly, then execute the command.
   - Working directory, variables and background jobs persist between calls.
3. Limitations:
   - No interactive commands (vim, less, password prompts).
   - No GUI applications.
   - No streaming: results are returned after the command completes.
   - A command that times out leaves the session unusable; call with restart=true.
"""


class BashTool(Tool):
    name = "bash"
    description = INSTRUCTIONS.format(banned="(not configured)")
    inputs = {
        "command": {
            "type": "string",
            "description": "The bash command to be executed.",
            "nullable": True,
        },
        "restart": {
            "type": "boolean",
            "description": "When true, the bash session will be restarted. Any provided commands will be ignored.",
            "nullable": True,
        },
        "stop": {
            "type": "boolean",
            "description": "When true, the bash session will be stopped. Any provided commands will be executed before the session is stopped.",
            "nullable": True,
        },
    }
    output_type = "string"

    def __init__(self, session_id: str = "default", call_timeout: Optional[float] = None):
        super().__init__()
        self.session_id = session_id
        self.call_timeout = call_timeout
        self._controller: Optional[BashController] = None
        self._event_loop: Optional[asyncio.AbstractEventLoop] = None

    def set_context(
        self,
        controller: BashController,
        event_loop: asyncio.AbstractEventLoop,
    ) -> None:
        """
        Inject the controller and the loop its sessions live on.

        Args:
            controller: BashController that owns the shell sessions.
            event_loop: The asyncio loop for sync-to-async bridging.
        """
        self._controller = controller
        self._event_loop = event_loop
        self.description = INSTRUCTIONS.format(
            banned=", ".join(controller.banned_commands)
        )

    def forward(
        self,
        command: Optional[str] = None,
        restart: Optional[bool] = None,
        stop: Optional[bool] = None,
    ) -> str:
        if not self._controller or not self._event_loop:
            return "Error: BashTool not initialized. No controller context."

        # Agent tools run in a worker thread; sessions live on the main loop.
        future = asyncio.run_coroutine_threadsafe(
            self._controller.bash(
                command=command,
                restart=restart,
                stop=stop,
                session_id=self.session_id,
            ),
            self._event_loop,
        )
        timeout = self.call_timeout or self._controller.config.timeout + 10
        try:
            response = future.result(timeout=timeout)
        except NoCommandProvided as e:
            return f"Error: {e}"
        except concurrent.futures.TimeoutError:
            future.cancel()
            logger.error(f"Bash tool call did not return within {timeout:g}s")
            return f"Error: bash tool did not return within {timeout:g} seconds"

        return "\n".join(block.text for block in response.content)
