"""
shellkeep CLI.

- exec:   run one command in a throwaway session
- shell:  keep a session alive and feed it lines from stdin
- banned: list the effective banned commands
"""

import typer

from shellkeep.cli.main import configure_logging, register_commands

app = typer.Typer(help="shellkeep - persistent shell sessions for agents")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """
    shellkeep - persistent shell sessions for agents.
    """
    configure_logging(verbose)


register_commands(app)

if __name__ == "__main__":
    app()
