"""
Maps a typed options dict onto the flat argument list of a p4 command.

A FlagSpec describes, for one command, which option keys become which
flags, which key holds the file arguments and which constant flags are
always passed.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from . import uri as PerforceUri
from .uri import PerforceFile, Uri


@dataclass(frozen=True)
class FlagSpec:
    """
    flags: ordered (flag, option key) pairs, e.g. ("c", "chnum") -> -c <chnum>
    last_arg: option key holding the positional file argument(s)
    fixed_args: flags that are always passed
    fixed_args_last: put fixed_args after the positional arguments
    last_arg_is_formatted_array: join the positional values into one argument
    ignore_revision_fragments: drop #rev / @label suffixes from file arguments
    """

    flags: tuple[tuple[str, str], ...] = ()
    last_arg: str | None = None
    fixed_args: tuple[str, ...] = ()
    fixed_args_last: bool = False
    last_arg_is_formatted_array: bool = False
    ignore_revision_fragments: bool = False

    def __post_init__(self) -> None:
        keys = [key for _, key in self.flags]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Duplicate option keys in flag spec: {keys}")

    def __call__(self, options: Mapping[str, Any]) -> list[str]:
        return map_flags(self, options)


def flag_spec(
    flags: Sequence[tuple[str, str]] = (),
    last_arg: str | None = None,
    fixed_args: Sequence[str] = (),
    **modifiers: bool,
) -> FlagSpec:
    """Shorthand constructor taking plain lists."""
    return FlagSpec(tuple(flags), last_arg, tuple(fixed_args), **modifiers)


# =========================================================================
# Value conversion
# =========================================================================


def path_to_arg(path: PerforceFile, ignore_revision_fragments: bool = False) -> str:
    """
    Converts a file argument to the string p4 expects.
    Depot uris become depot paths, other uris their local path; either way
    the revision or label is appended unless ignore_revision_fragments is set.
    Plain strings are passed through untouched.
    """
    if not isinstance(path, Uri):
        return str(path)
    suffix = (
        ""
        if ignore_revision_fragments
        else PerforceUri.rev_or_label_as_suffix(PerforceUri.get_rev_or_at_label(path))
    )
    if PerforceUri.is_depot_uri(path):
        return PerforceUri.get_depot_path_from_depot_uri(path) + suffix
    return PerforceUri.fs_path_without_rev(path) + suffix


def paths_to_args(
    paths: Sequence[PerforceFile], ignore_revision_fragments: bool = False
) -> list[str]:
    return [path_to_arg(p, ignore_revision_fragments) for p in paths]


def make_flag(flag: str, value: Any) -> list[str]:
    """
    True -> [-f], False / None -> [], str or number -> [-f, value],
    list -> one [-f, value] pair per element
    """
    if value is None or value is False:
        return []
    if value is True:
        return ["-" + flag]
    if isinstance(value, (list, tuple)):
        return [arg for item in value for arg in make_flag(flag, item)]
    return ["-" + flag, str(value)]


def _last_args(spec: FlagSpec, value: Any) -> list[str]:
    if value is None or value == "" or value == []:
        return []
    if isinstance(value, tuple) and len(value) == 2:
        # from / to pair, e.g. for move
        return paths_to_args(value, spec.ignore_revision_fragments)
    values = list(value) if isinstance(value, (list, tuple)) else [value]
    args = paths_to_args(values, spec.ignore_revision_fragments)
    if spec.last_arg_is_formatted_array:
        return [" ".join(args)]
    return args


def map_flags(spec: FlagSpec, options: Mapping[str, Any]) -> list[str]:
    """Builds the argument list for the options, in the order the FlagSpec declares."""
    args = [arg for flag, key in spec.flags for arg in make_flag(flag, options.get(key))]
    positional = _last_args(spec, options.get(spec.last_arg)) if spec.last_arg else []

    if spec.fixed_args_last:
        return args + positional + list(spec.fixed_args)
    return list(spec.fixed_args) + args + positional
