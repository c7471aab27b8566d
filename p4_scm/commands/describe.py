"""
Implements the `p4-scm describe` command.
"""
from typing import List

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from ..core.p4_actions import P4Connection
from ..core.types import DescribedChangelist
from ..core.uri import Uri
from .common import run_with_connection

console = Console()


def _change_tree(change: DescribedChangelist) -> Tree:
    status = "pending" if change.is_pending else "submitted"
    tree = Tree(f"[bold]{change.chnum}[/bold] by {change.user}@{change.client} ({status})")
    for line in change.description:
        tree.add(escape(line))
    for title, files in (("Affected", change.affected_files), ("Shelved", change.shelved_files)):
        if files:
            branch = tree.add(f"{title} files")
            for f in files:
                branch.add(escape(f"{f.depot_path}#{f.revision} {f.operation}"))
    if change.fixed_jobs:
        jobs = tree.add("Jobs fixed")
        for job in change.fixed_jobs:
            jobs.add(job.id)
    return tree


def describe_changes(
    chnums: List[str] = typer.Argument(..., help="The changelists to describe."),
    shelved: bool = typer.Option(False, "--shelved", "-S", help="Show shelved files."),
) -> None:
    """
    Shows the description, files and fixed jobs of changelists.
    """

    async def action(p4: P4Connection, resource: Uri) -> list[DescribedChangelist]:
        return await p4.describe(
            resource, {"chnums": list(chnums), "omitDiffs": True, "shelved": shelved}
        )

    for change in run_with_connection(action):
        console.print(_change_tree(change))
