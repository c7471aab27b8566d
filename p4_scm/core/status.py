"""
File operation status, as reported in the action field of fstat, opened
and describe output.
"""

from enum import Enum


class Status(Enum):
    ADD = "add"
    ARCHIVE = "archive"
    BRANCH = "branch"
    DELETE = "delete"
    EDIT = "edit"
    IMPORT = "import"
    INTEGRATE = "integrate"
    LOCK = "lock"
    MOVE_ADD = "move/add"
    MOVE_DELETE = "move/delete"
    PURGE = "purge"
    UNKNOWN = "unknown"


def get_status(status_text: str) -> Status:
    try:
        return Status(status_text.strip().lower())
    except ValueError:
        return Status.UNKNOWN


def get_statuses(status_text: str) -> list[Status]:
    """Parses a comma separated list of actions, e.g. 'edit,move/add'"""
    if not status_text:
        return []
    return [get_status(s) for s in status_text.split(",")]


def operation_creates_file(status: Status) -> bool:
    return status in (Status.ADD, Status.BRANCH, Status.MOVE_ADD)


def operation_deletes_file(status: Status) -> bool:
    return status in (Status.DELETE, Status.MOVE_DELETE)
