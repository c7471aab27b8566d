"""
Parsers for commands that act on files: opened, have, sync, submit,
unshelve, plus the key / value output of p4 info.
"""

import re

from .. import uri as perforce_uri
from ..parse_utils import filter_map, split_into_lines
from ..types import (
    HaveFile,
    OpenedFile,
    OpenedFileDetails,
    ResolveWarning,
    SubmitResult,
    SyncedFile,
    UnopenedFile,
    UnopenedFileReason,
    UnshelvedFile,
    UnshelvedFiles,
)
from ..uri import Uri

# //depot/a.txt#3 - edit default change (text)
# //depot/a.txt#3 - move/add change 45 (text+k) *locked*
OPENED_RE = re.compile(r"^(.+)#(\d+) - (\S+) (?:default change|change (\d+)) \((\S+)\)")

# /home/ws/a.txt - file(s) not opened on this client.
# /tmp/a.txt - is not under client's root '/home/ws'.
NOT_OPENED_RE = re.compile(r"^(.+?) - file\(s\) not opened on this client")
NOT_IN_ROOT_RE = re.compile(r"^(.+?) - (?:is not under client's root|file\(s\) not in client view)")

# //depot/a.txt#3 - /home/ws/a.txt
HAVE_RE = re.compile(r"^(.+)#(\d+) - (.+)")

# //depot/a.txt#3 - updating /home/ws/a.txt
SYNC_RE = re.compile(r"^(.+)#(\d+) - (updating|added as|deleted as|refreshing) (.+)$")

# Change 45 submitted.
# Change 45 renamed change 47 and submitted.
SUBMIT_RE = re.compile(r"Change (\d+) (?:renamed change (\d+) and )?submitted")

RESOLVE_WARNING_RE = re.compile(r"\.{3} (.*?) - must resolve (.*?) before submitting")
UNSHELVED_RE = re.compile(r"(.*?) - unshelved, opened for (.*)")

INFO_RE = re.compile(r"([^:]+): (.+)")


# =========================================================================
# opened
# =========================================================================


def parse_opened_line(line: str) -> OpenedFile | None:
    match = OPENED_RE.match(line)
    if not match:
        return None
    depot_path, revision, operation, chnum, filetype = match.groups()
    return OpenedFile(
        depot_path=depot_path,
        revision=revision,
        chnum=chnum or "default",
        operation=operation,
        filetype=filetype,
        message=line,
    )


def parse_opened_output(output: str) -> list[OpenedFile]:
    return filter_map(parse_opened_line, split_into_lines(output))


def parse_unopened_line(line: str) -> UnopenedFile | None:
    match = NOT_OPENED_RE.match(line)
    if match:
        return UnopenedFile(
            file_path=match.group(1), reason=UnopenedFileReason.NOT_OPENED, message=line
        )
    match = NOT_IN_ROOT_RE.match(line)
    if match:
        return UnopenedFile(
            file_path=match.group(1), reason=UnopenedFileReason.NOT_IN_ROOT, message=line
        )
    return None


def parse_opened_file_details(stdout: str, stderr: str) -> OpenedFileDetails:
    """Opened files are reported on stdout, the ones that aren't on stderr."""
    return OpenedFileDetails(
        open=tuple(parse_opened_output(stdout)),
        unopened=tuple(filter_map(parse_unopened_line, split_into_lines(stderr))),
    )


# =========================================================================
# have / sync / submit / unshelve
# =========================================================================


def parse_have_output(resource: Uri, output: str) -> HaveFile | None:
    match = HAVE_RE.match(output)
    if not match:
        return None
    depot_path, revision, local_path = match.groups()
    return HaveFile(
        depot_path=depot_path,
        revision=revision,
        depot_uri=perforce_uri.from_depot_path(resource, depot_path, revision),
        local_uri=Uri.file(local_path.strip()),
    )


def parse_sync_line(line: str) -> SyncedFile | None:
    match = SYNC_RE.match(line)
    if not match:
        return None
    depot_path, revision, operation, local_path = match.groups()
    return SyncedFile(
        depot_path=depot_path, revision=revision, operation=operation, local_path=local_path
    )


def parse_sync_output(output: str) -> list[SyncedFile]:
    return filter_map(parse_sync_line, split_into_lines(output))


def parse_submit_output(output: str) -> SubmitResult:
    """When the server renumbers the change on submit, the new number is used."""
    match = SUBMIT_RE.search(output)
    if not match:
        return SubmitResult(raw_output=output)
    original, renamed = match.groups()
    return SubmitResult(raw_output=output, chnum=renamed or original)


def _parse_unshelve_line(line: str) -> UnshelvedFile | ResolveWarning | None:
    if line.startswith("..."):
        match = RESOLVE_WARNING_RE.match(line)
        return ResolveWarning(*match.groups()) if match else None
    match = UNSHELVED_RE.match(line)
    return UnshelvedFile(*match.groups()) if match else None


def parse_unshelve_output(output: str) -> UnshelvedFiles:
    parsed = filter_map(_parse_unshelve_line, split_into_lines(output))
    return UnshelvedFiles(
        files=tuple(p for p in parsed if isinstance(p, UnshelvedFile)),
        warnings=tuple(p for p in parsed if isinstance(p, ResolveWarning)),
    )


# =========================================================================
# info
# =========================================================================


def parse_info_output(output: str) -> dict[str, str]:
    """User name: super -> {"User name": "super"}"""
    info: dict[str, str] = {}
    for line in split_into_lines(output.strip()):
        match = INFO_RE.match(line)
        if match:
            info[match.group(1)] = match.group(2)
    return info
