"""
Contains the P4Connection class which acts as the primary interface (Facade)
for all Perforce interactions. Each operation maps its options to p4
arguments, runs the command through the executor and parses the output into
typed records.
"""

import asyncio
import logging
from typing import Any, Mapping, Protocol, Sequence

from .config import P4Config
from .executor import (
    P4ConnectionError,
    P4Exception,
    P4Executor,
    P4LoginRequiredError,
    P4OperationError,
    P4TimeoutError,
    _is_login_error,
    raise_for_output,
)
from .flags import FlagSpec, flag_spec, path_to_arg
from .parse_utils import split_into_chunks
from .parsers.changes import parse_changes_output, parse_describe_output, to_shelved_change_info
from .parsers.file_ops import (
    parse_have_output,
    parse_info_output,
    parse_opened_file_details,
    parse_opened_output,
    parse_submit_output,
    parse_sync_output,
    parse_unshelve_output,
)
from .parsers.fstat import parse_fstat_output
from .parsers.history import parse_annotate_output, parse_filelog_output
from .parsers.listings import (
    parse_branches_output,
    parse_clients_output,
    parse_fixes_output,
    parse_jobs_output,
    parse_users_output,
)
from .parsers.specs import (
    format_change_spec,
    format_job_spec,
    parse_change_spec,
    parse_created_changelist,
    parse_created_job,
    parse_job_spec,
)
from .types import (
    AddOptions,
    Annotation,
    AnnotateOptions,
    BranchesOptions,
    BranchInfo,
    ChangeInfo,
    ChangesOptions,
    ChangeSpec,
    ChangeSpecOptions,
    ClientInfo,
    ClientsOptions,
    CommandOutput,
    CreatedChangelist,
    CreatedJob,
    DeleteChangelistOptions,
    DeleteOptions,
    DescribedChangelist,
    DescribeOptions,
    EditOptions,
    FileLogItem,
    FileLogOptions,
    FixedJob,
    FixesOptions,
    FixJobOptions,
    FstatInfo,
    FstatOptions,
    HaveFile,
    HaveFileOptions,
    Job,
    JobFix,
    JobInfo,
    JobOptions,
    JobsOptions,
    LoginOptions,
    MoveOptions,
    OpenedFile,
    OpenedFileDetails,
    OpenedOptions,
    PrintOptions,
    ReopenOptions,
    ResolveOptions,
    RevertOptions,
    ShelvedChangeInfo,
    ShelveOptions,
    SubmitChangelistOptions,
    SubmitResult,
    SyncedFile,
    SyncOptions,
    UnshelvedFiles,
    UnshelveOptions,
    UserInfo,
    UsersOptions,
)
from .uri import PerforceFile, as_uri

__all__ = [
    "P4Connection",
    "P4Exception",
    "P4ConnectionError",
    "P4LoginRequiredError",
    "P4OperationError",
    "P4TimeoutError",
]

log = logging.getLogger(__name__)


class CommandExecutor(Protocol):
    async def execute(
        self,
        context: PerforceFile | None,
        command: str,
        args: Sequence[str] = (),
        input: str | None = None,
    ) -> CommandOutput: ...


# --- Argument Mappings ---

CHANGES_FLAGS = flag_spec(
    [("c", "client"), ("s", "status"), ("u", "user"), ("m", "maxChangelists")],
    "files",
    ["-l"],
)
DESCRIBE_FLAGS = flag_spec([("s", "omitDiffs"), ("S", "shelved")], "chnums")
FSTAT_FLAGS = flag_spec(
    [("e", "chnum"), ("Or", "outputPendingRecord"), ("Rs", "limitToShelved")], "depotPaths"
)
OPENED_FLAGS = flag_spec([("c", "chnum")], "files")
CHANGE_SPEC_FLAGS = flag_spec(
    [], "existingChangelist", ["-o"], last_arg_is_formatted_array=True
)
JOB_FLAGS = flag_spec([], "existingJob", ["-o"], last_arg_is_formatted_array=True)
FIXES_FLAGS = flag_spec([("j", "job")])
FIX_JOB_FLAGS = flag_spec([("c", "chnum"), ("d", "removeFix")], "jobId")
JOBS_FLAGS = flag_spec([("e", "filter"), ("m", "max")])
SUBMIT_FLAGS = flag_spec([("c", "chnum"), ("d", "description")], "file")
DELETE_CHANGELIST_FLAGS = flag_spec([("d", "chnum")])
REVERT_FLAGS = flag_spec([("a", "unchanged"), ("c", "chnum")], "paths")
DELETE_FLAGS = flag_spec([("c", "chnum")], "paths")
SHELVE_FLAGS = flag_spec([("f", "force"), ("d", "delete"), ("c", "chnum")], "paths")
UNSHELVE_FLAGS = flag_spec(
    [("f", "force"), ("s", "shelvedChnum"), ("c", "toChnum"), ("b", "branchMapping")],
    "paths",
)
REOPEN_FLAGS = flag_spec([("c", "chnum")], "files")
SYNC_FLAGS = flag_spec([], "files")
RESOLVE_FLAGS = flag_spec(
    [("c", "chnum"), ("f", "reresolve")], "files", ignore_revision_fragments=True
)
ADD_FLAGS = flag_spec([("c", "chnum")], "files")
EDIT_FLAGS = flag_spec([("c", "chnum")], "files")
MOVE_FLAGS = flag_spec([("c", "chnum")], "fromToFile")
HAVE_FLAGS = flag_spec([], "file", ignore_revision_fragments=True)
USERS_FLAGS = flag_spec([("m", "max")], "userFilters")
BRANCHES_FLAGS = flag_spec([("E", "nameFilter"), ("m", "max")])
CLIENTS_FLAGS = flag_spec([("E", "nameFilter"), ("m", "max")])
FILELOG_FLAGS = flag_spec(
    [("i", "followBranches"), ("s", "omitNonContributoryIntegrations")], "file", ["-l", "-t"]
)
ANNOTATE_FLAGS = flag_spec(
    [("c", "outputChangelist"), ("i", "followBranches"), ("u", "outputUser")], "file", ["-q"]
)
PRINT_FLAGS = flag_spec([], "file", ["-q"])


# --- P4Connection Class ---


class P4Connection:
    """
    The main entry point for p4 operations.
    Every method takes a resource - a local path or address - that decides
    which workspace the command runs in.
    """

    def __init__(
        self, config: P4Config | None = None, executor: CommandExecutor | None = None
    ) -> None:
        self.config = config or P4Config()
        self.executor: CommandExecutor = executor or P4Executor(self.config)

    # =========================================================================
    # Core Primitives
    # =========================================================================

    async def run(
        self,
        resource: PerforceFile | None,
        command: str,
        args: Sequence[str] = (),
        input: str | None = None,
    ) -> str:
        """Runs a command, raising if it reports anything on stderr."""
        output = await self.executor.execute(resource, command, args, input)
        raise_for_output(command, args, output)
        return output.stdout

    async def run_ignoring_stderr(
        self, resource: PerforceFile | None, command: str, args: Sequence[str] = ()
    ) -> str:
        """
        Runs a command where errors for individual files are expected, e.g.
        fstat on a file that isn't in the depot. Only a login problem raises.
        """
        output = await self.executor.execute(resource, command, args)
        if output.stderr:
            if _is_login_error(output.stderr):
                raise_for_output(command, args, output)
            log.warning(f"p4 {command}: {output.stderr.strip()}")
        return output.stdout

    async def _run_mapped(
        self,
        resource: PerforceFile | None,
        command: str,
        flags: FlagSpec,
        options: Mapping[str, Any],
    ) -> str:
        return await self.run(resource, command, flags(options))

    # =========================================================================
    # Changelists
    # =========================================================================

    async def get_changelists(
        self, resource: PerforceFile, options: ChangesOptions
    ) -> list[ChangeInfo]:
        """Without maxChangelists, the configured search limit applies."""
        limited: ChangesOptions = {
            "maxChangelists": self.config.changelist_search_max_results,
            **options,
        }
        output = await self._run_mapped(resource, "changes", CHANGES_FLAGS, limited)
        return parse_changes_output(output)

    async def describe(
        self, resource: PerforceFile, options: DescribeOptions
    ) -> list[DescribedChangelist]:
        if not options["chnums"]:
            return []
        output = await self._run_mapped(resource, "describe", DESCRIBE_FLAGS, options)
        return parse_describe_output(output)

    async def get_shelved_files(
        self, resource: PerforceFile, chnums: list[str]
    ) -> list[ShelvedChangeInfo]:
        """The shelved depot paths of each change that has any."""
        described = await self.describe(
            resource, {"chnums": chnums, "omitDiffs": True, "shelved": True}
        )
        return to_shelved_change_info(described)

    async def get_fixed_jobs(self, resource: PerforceFile, chnum: str) -> list[FixedJob]:
        described = await self.describe(resource, {"chnums": [chnum], "omitDiffs": True})
        return list(described[0].fixed_jobs) if described else []

    async def get_change_spec(
        self, resource: PerforceFile, options: ChangeSpecOptions
    ) -> ChangeSpec:
        output = await self._run_mapped(resource, "change", CHANGE_SPEC_FLAGS, options)
        return parse_change_spec(output)

    async def input_change_spec(
        self, resource: PerforceFile, spec: ChangeSpec
    ) -> CreatedChangelist:
        output = await self.run(resource, "change", ["-i"], input=format_change_spec(spec))
        created = parse_created_changelist(output)
        log.debug(f"Saved change spec: {created.chnum}")
        return created

    async def submit_changelist(
        self, resource: PerforceFile, options: SubmitChangelistOptions
    ) -> SubmitResult:
        output = await self._run_mapped(resource, "submit", SUBMIT_FLAGS, options)
        return parse_submit_output(output)

    async def delete_changelist(
        self, resource: PerforceFile, options: DeleteChangelistOptions
    ) -> str:
        return await self._run_mapped(resource, "change", DELETE_CHANGELIST_FLAGS, options)

    # =========================================================================
    # File Status
    # =========================================================================

    async def get_fstat_info(
        self, resource: PerforceFile, options: FstatOptions
    ) -> list[FstatInfo]:
        """
        Runs fstat in chunks of max_file_per_command paths, concurrently.
        Files unknown to the server are simply missing from the result.
        """
        chunks = split_into_chunks(options["depotPaths"], self.config.max_file_per_command)
        outputs = await asyncio.gather(
            *(
                self.run_ignoring_stderr(
                    resource, "fstat", FSTAT_FLAGS({**options, "depotPaths": chunk})
                )
                for chunk in chunks
            )
        )
        return [info for output in outputs for info in parse_fstat_output(output)]

    async def get_fstat_info_mapped(
        self, resource: PerforceFile, options: FstatOptions
    ) -> list[FstatInfo | None]:
        """
        Like get_fstat_info, but returns one entry per requested path, in the
        requested order. Results are matched on depotFile, so the paths must
        be depot paths without revisions.
        """
        all_info = await self.get_fstat_info(resource, options)
        by_depot_file = {info["depotFile"]: info for info in all_info}
        return [by_depot_file.get(path_to_arg(path, True)) for path in options["depotPaths"]]

    async def get_opened_files(
        self, resource: PerforceFile, options: OpenedOptions
    ) -> list[OpenedFile]:
        output = await self.run_ignoring_stderr(resource, "opened", OPENED_FLAGS(options))
        return parse_opened_output(output)

    async def get_opened_file_details(
        self, resource: PerforceFile, options: OpenedOptions
    ) -> OpenedFileDetails:
        """Reports which of the files are open, and why the others aren't."""
        args = OPENED_FLAGS(options)
        output = await self.executor.execute(resource, "opened", args)
        if _is_login_error(output.stderr):
            raise_for_output("opened", args, output)
        return parse_opened_file_details(output.stdout, output.stderr)

    async def have(self, resource: PerforceFile, options: HaveFileOptions) -> HaveFile | None:
        """The depot path and revision we have of a file, if any."""
        output = await self.run_ignoring_stderr(resource, "have", HAVE_FLAGS(options))
        return parse_have_output(as_uri(resource), output)

    async def have_file(self, resource: PerforceFile, options: HaveFileOptions) -> bool:
        # stderr means we don't have it, so it isn't worth a warning
        output = await self.executor.execute(resource, "have", HAVE_FLAGS(options))
        if _is_login_error(output.stderr):
            raise_for_output("have", HAVE_FLAGS(options), output)
        return bool(output.stdout.strip())

    async def get_info(self, resource: PerforceFile | None) -> dict[str, str]:
        return parse_info_output(await self.run(resource, "info"))

    # =========================================================================
    # File Operations (Add, Edit, Delete, Move, Revert, Reopen)
    # =========================================================================

    async def add(self, resource: PerforceFile, options: AddOptions) -> str:
        return await self._run_mapped(resource, "add", ADD_FLAGS, options)

    async def edit(self, resource: PerforceFile, options: EditOptions) -> str:
        return await self._run_mapped(resource, "edit", EDIT_FLAGS, options)

    async def delete(self, resource: PerforceFile, options: DeleteOptions) -> str:
        return await self._run_mapped(resource, "delete", DELETE_FLAGS, options)

    async def move(self, resource: PerforceFile, options: MoveOptions) -> str:
        return await self._run_mapped(resource, "move", MOVE_FLAGS, options)

    async def revert(self, resource: PerforceFile, options: RevertOptions) -> str:
        return await self._run_mapped(resource, "revert", REVERT_FLAGS, options)

    async def reopen_files(self, resource: PerforceFile, options: ReopenOptions) -> str:
        return await self._run_mapped(resource, "reopen", REOPEN_FLAGS, options)

    async def sync(self, resource: PerforceFile, options: SyncOptions) -> list[SyncedFile]:
        output = await self._run_mapped(resource, "sync", SYNC_FLAGS, options)
        return parse_sync_output(output)

    async def resolve(self, resource: PerforceFile, options: ResolveOptions) -> str:
        return await self._run_mapped(resource, "resolve", RESOLVE_FLAGS, options)

    async def print_file(self, resource: PerforceFile, options: PrintOptions) -> str:
        return await self._run_mapped(resource, "print", PRINT_FLAGS, options)

    # =========================================================================
    # Shelving & Unshelving
    # =========================================================================

    async def shelve(self, resource: PerforceFile, options: ShelveOptions) -> str:
        return await self._run_mapped(resource, "shelve", SHELVE_FLAGS, options)

    async def unshelve(self, resource: PerforceFile, options: UnshelveOptions) -> UnshelvedFiles:
        """
        Resolve warnings are reported on stderr alongside a successful
        unshelve, so stderr is parsed rather than raised.
        """
        args = UNSHELVE_FLAGS(options)
        output = await self.executor.execute(resource, "unshelve", args)
        result = parse_unshelve_output(output.stdout + "\n" + output.stderr)
        if output.returncode != 0 and not result.files:
            raise_for_output("unshelve", args, output)
        return result

    # =========================================================================
    # Jobs
    # =========================================================================

    async def get_job(self, resource: PerforceFile, options: JobOptions) -> Job:
        output = await self._run_mapped(resource, "job", JOB_FLAGS, options)
        return parse_job_spec(output)

    async def input_job_spec(self, resource: PerforceFile, job: Job) -> CreatedJob:
        return await self.input_raw_job_spec(resource, format_job_spec(job))

    async def input_raw_job_spec(self, resource: PerforceFile, spec_text: str) -> CreatedJob:
        output = await self.run(resource, "job", ["-i"], input=spec_text)
        return parse_created_job(output)

    async def fixes(self, resource: PerforceFile, options: FixesOptions) -> list[JobFix]:
        output = await self._run_mapped(resource, "fixes", FIXES_FLAGS, options)
        return parse_fixes_output(output)

    async def fix_job(self, resource: PerforceFile, options: FixJobOptions) -> str:
        return await self._run_mapped(resource, "fix", FIX_JOB_FLAGS, options)

    async def jobs(self, resource: PerforceFile, options: JobsOptions) -> list[JobInfo]:
        output = await self._run_mapped(resource, "jobs", JOBS_FLAGS, options)
        return parse_jobs_output(output)

    # =========================================================================
    # Users, Branches, Clients
    # =========================================================================

    async def users(self, resource: PerforceFile, options: UsersOptions) -> list[UserInfo]:
        output = await self._run_mapped(resource, "users", USERS_FLAGS, options)
        return parse_users_output(output)

    async def branches(
        self, resource: PerforceFile, options: BranchesOptions
    ) -> list[BranchInfo]:
        output = await self._run_mapped(resource, "branches", BRANCHES_FLAGS, options)
        return parse_branches_output(output)

    async def clients(self, resource: PerforceFile, options: ClientsOptions) -> list[ClientInfo]:
        output = await self._run_mapped(resource, "clients", CLIENTS_FLAGS, options)
        return parse_clients_output(output)

    # =========================================================================
    # History
    # =========================================================================

    async def get_file_history(
        self, resource: PerforceFile, options: FileLogOptions
    ) -> list[FileLogItem]:
        output = await self._run_mapped(resource, "filelog", FILELOG_FLAGS, options)
        return parse_filelog_output(output)

    async def get_file_histories(
        self, resource: PerforceFile, files: list[PerforceFile], follow_branches: bool = False
    ) -> list[list[FileLogItem]]:
        """Histories for several files at once, in the order requested."""
        return list(
            await asyncio.gather(
                *(
                    self.get_file_history(
                        resource, {"file": file, "followBranches": follow_branches}
                    )
                    for file in files
                )
            )
        )

    async def annotate(self, resource: PerforceFile, options: AnnotateOptions) -> list[Annotation]:
        output = await self._run_mapped(resource, "annotate", ANNOTATE_FLAGS, options)
        return parse_annotate_output(output, with_user=bool(options.get("outputUser")))

    # =========================================================================
    # Login
    # =========================================================================

    async def login(self, resource: PerforceFile | None, options: LoginOptions) -> str:
        return await self.run(resource, "login", input=options["password"])

    async def logout(self, resource: PerforceFile | None) -> str:
        return await self.run(resource, "logout")

    async def is_logged_in(self, resource: PerforceFile | None) -> bool:
        try:
            await self.run(resource, "login", ["-s"])
            return True
        except P4Exception as e:
            log.debug(f"Not logged in: {e}")
            return False
