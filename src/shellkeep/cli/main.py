"""
CLI commands: exec, shell, banned.
"""

import asyncio
from typing import Optional

import typer

from shellkeep.config import SessionConfig
from shellkeep.controller import BashController
from shellkeep.models import BashResponse

SHELL_HELP = "Lines are run in one persistent session. :restart restarts it, :quit (or EOF) stops."


def configure_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    from shellkeep.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING")


def build_controller(
    ban: Optional[list[str]] = None, timeout: Optional[float] = None
) -> BashController:
    """Controller from environment settings plus CLI overrides."""
    config = SessionConfig.from_env(timeout=timeout)
    return BashController(config, extra_banned=ban or [])


def echo_response(response: BashResponse) -> None:
    for block in response.content:
        if block.text.startswith("error: "):
            typer.echo(block.text, err=True)
        else:
            typer.echo(block.text)


async def _exec_once(controller: BashController, command: str) -> BashResponse:
    try:
        return await controller.bash(command=command, stop=True)
    finally:
        await controller.shutdown()


async def _repl(controller: BashController) -> None:
    try:
        while True:
            try:
                line = await asyncio.to_thread(input)
            except EOFError:
                break

            line = line.strip()
            if not line:
                continue
            if line in (":quit", ":exit"):
                break
            if line == ":restart":
                echo_response(await controller.restart())
                continue

            echo_response(await controller.bash(command=line))
    finally:
        await controller.shutdown()


def register_commands(app: typer.Typer):
    @app.command("exec")
    def exec_command(
        command: str = typer.Argument(help="Command line to run"),
        ban: Optional[list[str]] = typer.Option(
            None, "--ban", "-b", help="Extra banned command (repeatable)"
        ),
        timeout: Optional[float] = typer.Option(
            None, "--timeout", "-t", help="Seconds before the command is abandoned"
        ),
    ):
        """Run one command in a fresh session, then stop it."""
        controller = build_controller(ban, timeout)
        response = asyncio.run(_exec_once(controller, command))
        echo_response(response)
        if len(response.content) > 1:
            raise typer.Exit(code=1)

    @app.command("shell")
    def shell(
        ban: Optional[list[str]] = typer.Option(
            None, "--ban", "-b", help="Extra banned command (repeatable)"
        ),
        timeout: Optional[float] = typer.Option(
            None, "--timeout", "-t", help="Seconds before a command is abandoned"
        ),
    ):
        """Read commands from stdin and run them in one persistent session."""
        typer.echo(SHELL_HELP, err=True)
        controller = build_controller(ban, timeout)
        asyncio.run(_repl(controller))

    @app.command("banned")
    def banned(
        ban: Optional[list[str]] = typer.Option(
            None, "--ban", "-b", help="Extra banned command (repeatable)"
        ),
    ):
        """List the commands that will be refused."""
        controller = build_controller(ban)
        for cmd in controller.banned_commands:
            typer.echo(cmd)
