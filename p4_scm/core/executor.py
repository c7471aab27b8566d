"""
Runs the p4 executable as an asyncio subprocess, and defines the exceptions
raised when it fails.
"""

import asyncio
import logging
import os
from typing import Sequence

from .config import P4Config
from .types import CommandOutput
from .uri import PerforceFile, as_uri, get_usable_workspace

log = logging.getLogger(__name__)

TERMINATION_GRACE_PERIOD = 2.0

# --- Custom Domain-Specific Exceptions ---


class P4Exception(Exception):
    """Base exception for p4-scm errors."""

    pass


class P4ConnectionError(P4Exception):
    """The p4 executable could not be run."""

    pass


class P4LoginRequiredError(P4ConnectionError):
    """
    Raised when a p4 command fails because the
    user's session ticket has expired or was never obtained.
    """

    pass


class P4OperationError(P4Exception):
    """A p4 command ran, but reported a failure."""

    def __init__(
        self, message: str, stderr: str = "", command: str = "", args: Sequence[str] = ()
    ) -> None:
        super().__init__(message)
        self.stderr = stderr
        self.command = command
        self.command_args = list(args)


class P4TimeoutError(P4OperationError):
    """The command did not finish within the configured timeout."""

    pass


# --- Helper for Error Parsing ---

_LOGIN_ERRORS = (
    "session has expired",
    "please login",
    "perforce password (p4passwd) invalid or unset",
)


def _is_login_error(err_str: str) -> bool:
    """Checks if p4 error output indicates a login is required."""
    err_lower = err_str.lower()
    return any(message in err_lower for message in _LOGIN_ERRORS)


def raise_for_output(command: str, args: Sequence[str], output: CommandOutput) -> None:
    """Raises the matching exception if the command reported an error."""
    if output.returncode == 0 and not output.stderr:
        return
    stderr = output.stderr.strip() or output.stdout.strip()
    if _is_login_error(stderr):
        raise P4LoginRequiredError(f"Perforce session expired. Please run 'p4 login'. ({stderr})")
    raise P4OperationError(
        f"p4 {command} failed: {stderr}", stderr=output.stderr, command=command, args=args
    )


def working_directory(context: PerforceFile | None) -> str | None:
    """
    The directory to run a command in: the workspace recorded in the
    address, or the address's own local path. Files resolve to their
    parent directory.
    """
    if context is None:
        return None
    workspace = get_usable_workspace(as_uri(context))
    if workspace is None or not workspace.fs_path:
        return None
    path = workspace.fs_path
    if os.path.isdir(path):
        return path
    return os.path.dirname(path) or None


# --- P4Executor Class ---


class P4Executor:
    """
    Runs p4 commands with the connection arguments from a P4Config.
    One subprocess per call; nothing is kept between calls.
    """

    def __init__(self, config: P4Config | None = None) -> None:
        self.config = config or P4Config()

    def build_command(self, command: str, args: Sequence[str]) -> list[str]:
        return [self.config.p4_path, *self.config.global_args(), command, *args]

    async def execute(
        self,
        context: PerforceFile | None,
        command: str,
        args: Sequence[str] = (),
        input: str | None = None,
    ) -> CommandOutput:
        """
        Runs `p4 <command> <args>` and returns its output, whatever the exit
        status. Raises P4ConnectionError if the executable can't be started
        and P4TimeoutError if it doesn't finish in time.
        """
        cmd = self.build_command(command, args)
        cwd = working_directory(context)
        env = os.environ.copy()
        if cwd:
            # p4 takes its working directory from PWD where it is set
            env["PWD"] = cwd
        log.debug(f"Running {' '.join(cmd)} in {cwd or os.getcwd()}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=env,
            )
        except OSError as e:
            raise P4ConnectionError(f"Failed to run '{self.config.p4_path}': {e}") from e

        stdin_bytes = input.encode("utf-8") if input is not None else None
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(stdin_bytes), timeout=self.config.command_timeout
            )
        except TimeoutError:
            await self._terminate(process)
            raise P4TimeoutError(
                f"p4 {command} timed out after {self.config.command_timeout}s",
                command=command,
                args=args,
            )
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        output = CommandOutput(
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
            returncode=process.returncode or 0,
        )
        if output.stderr:
            log.debug(f"p4 {command} stderr: {output.stderr.strip()}")
        return output

    async def check_output(
        self,
        context: PerforceFile | None,
        command: str,
        args: Sequence[str] = (),
        input: str | None = None,
    ) -> str:
        """Runs the command and returns stdout, raising if it reported an error."""
        output = await self.execute(context, command, args, input)
        raise_for_output(command, args, output)
        return output.stdout

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=TERMINATION_GRACE_PERIOD)
        except TimeoutError:
            process.kill()
            await process.wait()
