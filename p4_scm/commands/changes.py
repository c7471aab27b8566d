"""
Implements the `p4-scm changes` command.
"""
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core.p4_actions import P4Connection
from ..core.types import ChangeInfo, ChangelistStatus, ChangesOptions
from ..core.uri import Uri
from .common import run_with_connection

console = Console()


def _changes_table(changes: list[ChangeInfo]) -> Table:
    table = Table("Change", "Date", "User", "Client", "Description")
    for change in changes:
        table.add_row(
            f"{change.chnum}{' *pending*' if change.is_pending else ''}",
            str(change.date or ""),
            change.user,
            change.client,
            change.description[0] if change.description else "",
        )
    return table


def list_changes(
    files: Optional[List[str]] = typer.Argument(
        None, help="Only list changes affecting these files."
    ),
    status: Optional[ChangelistStatus] = typer.Option(
        None, "--status", "-s", help="pending, shelved or submitted."
    ),
    user: Optional[str] = typer.Option(None, "--user", "-u"),
    client: Optional[str] = typer.Option(None, "--client", "-c"),
    max_changes: Optional[int] = typer.Option(
        None, "--max", "-m", help="Maximum number of changes. Defaults to the search limit."
    ),
) -> None:
    """
    Lists changelists with their full descriptions.
    """
    options: ChangesOptions = {}
    if max_changes:
        options["maxChangelists"] = max_changes
    if status:
        options["status"] = status
    if user:
        options["user"] = user
    if client:
        options["client"] = client
    if files:
        options["files"] = list(files)

    async def action(p4: P4Connection, resource: Uri) -> list[ChangeInfo]:
        return await p4.get_changelists(resource, options)

    changes = run_with_connection(action)
    if not changes:
        console.print("No changes found.")
        return
    console.print(_changes_table(changes))
