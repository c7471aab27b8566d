"""
Shared setup for the CLI commands: builds the connection for the current
directory and runs a facade coroutine with the usual error reporting.
"""

import asyncio
import logging
import os
from typing import Awaitable, Callable, TypeVar

import typer
from rich.console import Console

from ..core.config import P4Config
from ..core.p4_actions import P4Connection, P4Exception, P4LoginRequiredError
from ..core.uri import Uri

log = logging.getLogger(__name__)
console = Console(stderr=True)

T = TypeVar("T")


def run_with_connection(action: Callable[[P4Connection, Uri], Awaitable[T]]) -> T:
    """
    Runs action against a connection for the current directory.
    Login problems exit cleanly, other Perforce errors exit with code 1.
    """
    cwd = os.getcwd()
    try:
        p4 = P4Connection(P4Config.from_environment(cwd))
        return asyncio.run(action(p4, Uri.file(cwd)))

    except P4LoginRequiredError as e:
        console.print(f"\nLogin required: {e}")
        raise typer.Exit(code=0)  # Graceful exit, not an error

    except P4Exception as e:
        console.print(f"\n[red]Perforce Error:[/red] {e}")
        raise typer.Exit(code=1)

    except Exception as e:
        console.print(f"\nAn unexpected error occurred: {e}")
        raise typer.Exit(code=1)
