"""
Implements the `p4-scm opened` command.
"""
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core.p4_actions import P4Connection
from ..core.status import Status, operation_creates_file, operation_deletes_file
from ..core.types import OpenedFile, OpenedOptions
from ..core.uri import Uri
from .common import run_with_connection

console = Console()


def _styled_action(operation: str, status: Status) -> str:
    if operation_creates_file(status):
        return f"[green]{operation}[/green]"
    if operation_deletes_file(status):
        return f"[red]{operation}[/red]"
    return operation


def list_opened(
    files: Optional[List[str]] = typer.Argument(None, help="Limit to these files."),
    chnum: Optional[str] = typer.Option(
        None, "--change", "-c", help="Changelist number, or 'default'."
    ),
) -> None:
    """
    Lists files opened in the current workspace.
    """
    options: OpenedOptions = {}
    if chnum:
        options["chnum"] = chnum
    if files:
        options["files"] = list(files)

    async def action(p4: P4Connection, resource: Uri) -> list[OpenedFile]:
        return await p4.get_opened_files(resource, options)

    opened = run_with_connection(action)
    if not opened:
        console.print("No files opened.")
        return

    table = Table("File", "Rev", "Action", "Change", "Type")
    for f in opened:
        table.add_row(
            f.depot_path, f.revision, _styled_action(f.operation, f.status), f.chnum, f.filetype
        )
    console.print(table)
