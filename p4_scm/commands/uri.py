"""
Implements the `p4-scm uri` commands, for building and taking apart
perforce: document addresses.
"""
import os
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core import uri as perforce_uri
from ..core.uri import Uri

console = Console()

uri_app = typer.Typer(help="Encode and decode perforce: addresses.", add_completion=False)


@uri_app.command("depot")
def encode_depot(
    depot_path: str = typer.Argument(..., help="e.g. //depot/main/a.txt"),
    rev: Optional[str] = typer.Option(None, "--rev", "-r", help="Revision, or @label."),
    workspace: Optional[str] = typer.Option(
        None, "--workspace", "-w", help="Workspace directory. Defaults to the current one."
    ),
) -> None:
    """
    Prints the address of a depot file.
    """
    owner = Uri.file(workspace or os.getcwd())
    address = perforce_uri.from_depot_path(owner, depot_path, rev)
    console.print(str(address), markup=False, highlight=False, soft_wrap=True)


@uri_app.command("local")
def encode_local(
    path: str = typer.Argument(..., help="A local file path."),
    rev: Optional[str] = typer.Option(None, "--rev", "-r", help="Revision, or @label."),
) -> None:
    """
    Prints the address of a local file.
    """
    full_path = os.path.abspath(path)
    address = perforce_uri.from_local_path(full_path, rev)
    console.print(str(address), markup=False, highlight=False, soft_wrap=True)


@uri_app.command("decode")
def decode(address: str = typer.Argument(..., help="An address string.")) -> None:
    """
    Shows what an address refers to and the arguments it carries.
    """
    uri = perforce_uri.parse(address)
    table = Table("Part", "Value")
    table.add_row("scheme", uri.scheme)
    table.add_row("authority", uri.authority)
    table.add_row("path", uri.path)
    table.add_row("revision", perforce_uri.get_rev_or_at_label(uri))
    if perforce_uri.is_depot_uri(uri):
        table.add_row("depot path", perforce_uri.get_depot_path_from_depot_uri(uri))
    else:
        table.add_row("local path", perforce_uri.fs_path_without_rev(uri))
    for name, value in perforce_uri.decode_arguments(uri.query).items():
        table.add_row(f"?{name}", str(value))
    console.print(table)
