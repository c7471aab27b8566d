"""
Central location for all shared type definitions: the records produced by
the output parsers, the options accepted by the commands, and aliases.
All records are frozen - they are built once by a parser and never changed.
"""

import datetime as dt
from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import NotRequired, TypedDict

from .status import Status, get_status
from .uri import PerforceFile, Uri


# --- Executor Results ---


@dataclass(frozen=True)
class CommandOutput:
    """Raw result of running a p4 command."""

    stdout: str
    stderr: str
    returncode: int


# --- Changelists ---


class ChangelistStatus(StrEnum):
    PENDING = "pending"
    SHELVED = "shelved"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class ChangeInfo:
    """
    A changelist as listed by p4 changes -l, e.g.
    Change 45 on 2020/02/15 by super@matto *pending*
    """

    chnum: str  # 45
    user: str  # super
    client: str  # matto
    description: tuple[str, ...] = ()  # ('a new changelist', '', 'more text')
    date: dt.date | None = None  # date(2020, 2, 15), or a datetime with -t
    is_pending: bool = False


@dataclass(frozen=True)
class FixedJob:
    id: str  # job000001
    description: tuple[str, ...] = ()


@dataclass(frozen=True)
class DepotFileOperation:
    """A file line in p4 describe: ... //depot/a.txt#3 edit"""

    depot_path: str
    revision: str
    operation: str

    @property
    def status(self) -> Status:
        return get_status(self.operation)


@dataclass(frozen=True)
class DescribedChangelist(ChangeInfo):
    """Output of p4 describe -s for one changelist."""

    affected_files: tuple[DepotFileOperation, ...] = ()
    shelved_files: tuple[DepotFileOperation, ...] = ()
    fixed_jobs: tuple[FixedJob, ...] = ()


@dataclass(frozen=True)
class ShelvedChangeInfo:
    chnum: str
    paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class CreatedChangelist:
    raw_output: str  # Change 46 created.
    chnum: str | None = None


@dataclass(frozen=True)
class SubmitResult:
    raw_output: str  # Change 45 renamed change 47 and submitted.
    chnum: str | None = None  # 47


# --- Specs ---


@dataclass(frozen=True)
class RawField:
    """A single field of a spec, value lines without their indent."""

    name: str  # Description
    value: tuple[str, ...] = ()  # ('line 1', 'line 2')


@dataclass(frozen=True)
class ChangeSpecFile:
    depot_path: str  # //depot/TestArea/doc3.txt
    action: str  # add


@dataclass(frozen=True)
class ChangeSpec:
    """
    The parsed form of p4 change -o. raw_fields keeps every field as it was
    output, so that fields we don't model are written back unchanged.
    """

    raw_fields: tuple[RawField, ...] = ()
    change: str | None = None  # new
    description: str | None = None
    files: tuple[ChangeSpecFile, ...] | None = None


@dataclass(frozen=True)
class Job:
    """The parsed form of p4 job -o."""

    raw_fields: tuple[RawField, ...] = ()
    job: str | None = None  # job000001
    status: str | None = None  # open
    user: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class CreatedJob:
    raw_output: str  # Job job000002 saved.
    job: str | None = None


# --- Jobs, Users, Clients, Branches ---


@dataclass(frozen=True)
class JobFix:
    """job000001 fixed by change 53 on 2020/04/04 by zogge@default (closed)"""

    job: str
    chnum: str
    date: str
    user: str
    client: str
    status: str


@dataclass(frozen=True)
class JobInfo:
    """job000001 on 2020/04/04 by zogge *open* 'a job description'"""

    job: str
    date: str
    user: str
    status: str
    description: str


@dataclass(frozen=True)
class UserInfo:
    """Amanda.Snozzlefwitch <am@snoz.lol> (Amanda Snozzlefwitch) accessed 2020/05/07"""

    user: str
    email: str
    full_name: str
    access_date: str


@dataclass(frozen=True)
class ClientInfo:
    """Client cli 2020/04/25 root /home/cli 'Created by super. '"""

    client: str
    date: str
    root: str
    description: str


@dataclass(frozen=True)
class BranchInfo:
    """Branch br-project-x-dev1 2020/04/25 'Created by Amanda.Snozzlefwitch. '"""

    branch: str
    date: str
    description: str


# --- File Operations ---

FstatInfo = dict[str, str]
"""One fstat block: field name -> value. Always contains 'depotFile'."""


@dataclass(frozen=True)
class UnshelvedFile:
    depot_path: str
    operation: str  # edit

    @property
    def status(self) -> Status:
        return get_status(self.operation)


@dataclass(frozen=True)
class ResolveWarning:
    depot_path: str
    resolve_path: str


@dataclass(frozen=True)
class UnshelvedFiles:
    files: tuple[UnshelvedFile, ...] = ()
    warnings: tuple[ResolveWarning, ...] = ()


@dataclass(frozen=True)
class SyncedFile:
    """//depot/a.txt#3 - updating /home/ws/a.txt"""

    depot_path: str
    revision: str
    operation: str  # updating, added as, deleted as, refreshing
    local_path: str


@dataclass(frozen=True)
class OpenedFile:
    """//depot/a.txt#3 - edit change 45 (text)"""

    depot_path: str
    revision: str
    chnum: str  # 'default' for the default changelist
    operation: str
    filetype: str
    message: str  # the full line

    @property
    def status(self) -> Status:
        return get_status(self.operation)


class UnopenedFileReason(Enum):
    NOT_OPENED = "not opened"
    NOT_IN_ROOT = "not in root"


@dataclass(frozen=True)
class UnopenedFile:
    file_path: str
    reason: UnopenedFileReason
    message: str


@dataclass(frozen=True)
class OpenedFileDetails:
    open: tuple[OpenedFile, ...] = ()
    unopened: tuple[UnopenedFile, ...] = ()


@dataclass(frozen=True)
class HaveFile:
    depot_path: str
    revision: str
    depot_uri: Uri
    local_uri: Uri


# --- History ---


class Direction(Enum):
    FROM = "from"
    TO = "to"


@dataclass(frozen=True)
class FileLogIntegration:
    """... ... copy from //depot/branch/a.txt#2,#3"""

    file: str
    start_rev: str | None
    end_rev: str | None
    operation: str  # copy
    direction: Direction


@dataclass(frozen=True)
class FileLogItem:
    """One revision in p4 filelog -l -t output."""

    file: str
    revision: str
    chnum: str
    operation: str
    date: dt.date | None
    user: str
    client: str
    description: tuple[str, ...] = ()
    integrations: tuple[FileLogIntegration, ...] = ()


@dataclass(frozen=True)
class Annotation:
    line: str
    revision_or_chnum: str
    user: str | None = None
    date: str | None = None


# --- Command Options ---


class ChangesOptions(TypedDict, total=False):
    client: str
    status: ChangelistStatus
    user: str
    maxChangelists: int
    files: list[PerforceFile]


class DescribeOptions(TypedDict):
    chnums: list[str]
    omitDiffs: NotRequired[bool]
    shelved: NotRequired[bool]


class FstatOptions(TypedDict):
    depotPaths: list[PerforceFile]
    chnum: NotRequired[str]
    limitToShelved: NotRequired[bool]
    outputPendingRecord: NotRequired[bool]


class OpenedOptions(TypedDict, total=False):
    chnum: str
    files: list[PerforceFile]


class ChangeSpecOptions(TypedDict, total=False):
    existingChangelist: str


class JobOptions(TypedDict, total=False):
    existingJob: str


class FixesOptions(TypedDict, total=False):
    job: str


class JobsOptions(TypedDict, total=False):
    filter: str
    max: int


class FixJobOptions(TypedDict):
    chnum: str
    jobId: str
    removeFix: NotRequired[bool]


class SubmitChangelistOptions(TypedDict, total=False):
    chnum: str
    description: str
    file: PerforceFile


class DeleteChangelistOptions(TypedDict):
    chnum: str


class RevertOptions(TypedDict):
    paths: list[PerforceFile]
    chnum: NotRequired[str]
    unchanged: NotRequired[bool]


class DeleteOptions(TypedDict):
    paths: list[PerforceFile]
    chnum: NotRequired[str]


class ShelveOptions(TypedDict, total=False):
    chnum: str
    force: bool
    delete: bool
    paths: list[PerforceFile]


class UnshelveOptions(TypedDict):
    shelvedChnum: str
    toChnum: NotRequired[str]
    force: NotRequired[bool]
    branchMapping: NotRequired[str]
    paths: NotRequired[list[PerforceFile]]


class ReopenOptions(TypedDict):
    chnum: str
    files: list[PerforceFile]


class SyncOptions(TypedDict, total=False):
    files: list[PerforceFile]


class ResolveOptions(TypedDict, total=False):
    chnum: str
    reresolve: bool
    files: list[PerforceFile]


class AddOptions(TypedDict):
    files: list[PerforceFile]
    chnum: NotRequired[str]


EditOptions = AddOptions


class MoveOptions(TypedDict):
    fromToFile: tuple[PerforceFile, PerforceFile]
    chnum: NotRequired[str]


class HaveFileOptions(TypedDict):
    file: PerforceFile


class UsersOptions(TypedDict, total=False):
    userFilters: list[str]
    max: int


class BranchesOptions(TypedDict, total=False):
    nameFilter: str
    max: int


ClientsOptions = BranchesOptions


class FileLogOptions(TypedDict):
    file: PerforceFile
    followBranches: NotRequired[bool]
    omitNonContributoryIntegrations: NotRequired[bool]


class AnnotateOptions(TypedDict):
    file: PerforceFile
    outputChangelist: NotRequired[bool]
    outputUser: NotRequired[bool]
    followBranches: NotRequired[bool]


class PrintOptions(TypedDict):
    file: PerforceFile


class LoginOptions(TypedDict):
    password: str


class NoOpts(TypedDict):
    pass
