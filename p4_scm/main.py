# p4_scm/main.py
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from .commands.changes import list_changes
from .commands.describe import describe_changes
from .commands.fstat import fstat_files
from .commands.opened import list_opened
from .commands.uri import uri_app

# Set up the main Typer application
app = typer.Typer(
    help="Inspect Perforce through the p4-scm command layer: changes, files and addresses.",
    add_completion=False,
    rich_markup_mode="markdown",
)

console = Console(stderr=True)

# Register the commands
app.command("changes")(list_changes)
app.command("describe")(describe_changes)
app.command("opened")(list_opened)
app.command("fstat")(fstat_files)
app.add_typer(uri_app, name="uri")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log every p4 command that is run."
    ),
) -> None:
    """
    Main callback for the p4-scm CLI.
    This runs before any command.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


if __name__ == "__main__":
    app()
