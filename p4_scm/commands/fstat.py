"""
Implements the `p4-scm fstat` command.
"""
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core.p4_actions import P4Connection
from ..core.types import FstatInfo, FstatOptions
from ..core.uri import Uri
from .common import run_with_connection

console = Console()


def fstat_files(
    paths: List[str] = typer.Argument(..., help="Depot or local paths."),
    chnum: Optional[str] = typer.Option(
        None, "--change", "-e", help="Only files affected by this changelist."
    ),
    shelved: bool = typer.Option(False, "--shelved", help="Only shelved files (-Rs)."),
) -> None:
    """
    Shows the file status fields reported by fstat, one table per file.
    """
    options: FstatOptions = {"depotPaths": list(paths), "limitToShelved": shelved}
    if chnum:
        options["chnum"] = chnum

    async def action(p4: P4Connection, resource: Uri) -> list[FstatInfo]:
        return await p4.get_fstat_info(resource, options)

    infos = run_with_connection(action)
    if not infos:
        console.print("No such file(s).")
        return
    for info in infos:
        table = Table("Field", "Value", title=info["depotFile"] or None)
        for name, value in info.items():
            table.add_row(name, value)
        console.print(table)
