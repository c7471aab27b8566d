"""
The perforce resource address: an immutable URI value plus the functions
that build, decode and decorate addresses for depot paths, local files,
revisions / labels and arbitrary command invocations.

A depot address looks like::

    perforce://depot/my/path/file.txt?command=print&p4Args=-q&depot&workspace=%2Fws&depotName=depot&rev=2#2

The revision or label lives in the fragment, and is mirrored in the ``rev``
query argument so that it survives consumers that drop fragments.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, replace
from typing import Mapping, TypedDict
from urllib.parse import quote, unquote

SCHEME = "perforce"

# RFC 3986, appendix B
_URI_RE = re.compile(r"^(?:([^:/?#]+?):)?(?://([^/?#]*))?([^?#]*)(?:\?([^#]*))?(?:#(.*))?$", re.DOTALL)

# characters encodeURIComponent leaves alone, on top of quote()'s own set
_COMPONENT_SAFE = "!*'()"
_PATH_SAFE = "/:@!$&'()*+,;=~"

_IS_WINDOWS = os.name == "nt"


class UriArguments(TypedDict, total=False):
    """Query arguments understood by the perforce address dialect."""

    workspace: str  # local path of the owning workspace
    depot: bool  # the path is a depot path, not a local one
    command: str  # p4 command used to produce the document
    p4Args: str  # extra arguments for the command
    leftUri: str  # left-hand side address when diffing
    haveRev: str  # the have revision of the underlying file
    diffStartFile: str  # file that started a diff chain
    depotName: str  # first segment of the depot path, case preserved
    rev: str  # revision or label, mirrors the fragment


ArgValue = str | bool | None
AnyUriArguments = Mapping[str, ArgValue]


# =========================================================================
# The URI value type
# =========================================================================


@dataclass(frozen=True)
class Uri:
    """
    A hierarchical URI split into its components.
    Components are stored decoded, except for the query which is kept in
    its encoded form (it is produced by encode_arguments).
    """

    scheme: str = ""
    authority: str = ""
    path: str = ""
    query: str = ""
    fragment: str = ""

    @classmethod
    def parse(cls, value: str) -> Uri:
        """Standard URI parsing, with no knowledge of embedded revisions."""
        scheme, authority, path, query, fragment = _split(value)
        return cls(
            scheme=scheme,
            authority=unquote(authority),
            path=unquote(path),
            query=query,
            fragment=unquote(fragment),
        )

    @classmethod
    def file(cls, fs_path: str) -> Uri:
        """Makes a file URI from a local filesystem path."""
        authority = ""
        path = fs_path
        if _IS_WINDOWS:
            path = path.replace("\\", "/")
        # UNC path: //server/share/...
        if path.startswith("//"):
            idx = path.find("/", 2)
            if idx == -1:
                authority, path = path[2:], "/"
            else:
                authority, path = path[2:idx], path[idx:] or "/"
        if path and not path.startswith("/"):
            path = "/" + path
        return cls(scheme="file", authority=authority, path=path)

    def with_(self, **changes: str) -> Uri:
        """Returns a copy with the given components replaced."""
        return replace(self, **changes)

    @property
    def fs_path(self) -> str:
        """
        The local filesystem form of the path, using the platform separator.
        Never use this for depot paths - see get_depot_path_from_depot_uri.
        """
        if self.authority and len(self.path) > 1 and self.scheme == "file":
            value = f"//{self.authority}{self.path}"
        elif re.match(r"^/[a-zA-Z]:", self.path):
            value = self.path[1].lower() + self.path[2:]
        else:
            value = self.path
        if _IS_WINDOWS:
            value = value.replace("/", "\\")
        return value

    def to_string(self) -> str:
        parts: list[str] = []
        if self.scheme:
            parts.append(self.scheme + ":")
        if self.authority or self.scheme == "file":
            parts.append("//" + quote(self.authority, safe=":@"))
        parts.append(quote(self.path, safe=_PATH_SAFE))
        if self.query:
            parts.append("?" + self.query)
        if self.fragment:
            parts.append("#" + quote(self.fragment, safe=_PATH_SAFE))
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_string()


def _split(value: str) -> tuple[str, str, str, str, str]:
    """Splits a uri string into its raw (still encoded) components."""
    match = _URI_RE.match(value)
    if not match:  # pragma: no cover - the pattern matches any string
        return "", "", value, "", ""
    return tuple(group or "" for group in match.groups())  # type: ignore[return-value]


PerforceFile = Uri | str
"""Anything that can be passed to p4 as a file argument."""


# =========================================================================
# Query argument codec
# =========================================================================


def _encode_param(name: str, value: ArgValue) -> str | None:
    if isinstance(value, str):
        return quote(name, safe=_COMPONENT_SAFE) + "=" + quote(value, safe=_COMPONENT_SAFE)
    if value is None or value:
        return quote(name, safe=_COMPONENT_SAFE)
    return None


def encode_arguments(args: AnyUriArguments) -> str:
    """
    Encodes arguments as a query string. True becomes a bare key,
    empty / falsy values are left out entirely.
    """
    encoded = (_encode_param(name, value) for name, value in args.items() if value)
    return "&".join(e for e in encoded if e)


def decode_arguments(query: str) -> UriArguments:
    """Decodes a query string. A bare key decodes to True."""
    args: dict[str, str | bool] = {}
    for arg in (query or "").split("&"):
        if not arg:
            continue
        name, _, value = arg.partition("=")
        args[unquote(name)] = unquote(value) if value else True
    return args  # type: ignore[return-value]


# =========================================================================
# Revision / label handling
# =========================================================================


def get_rev_or_at_label(uri: Uri) -> str:
    return uri.fragment


def rev_or_label_as_suffix(rev_or_at_label: str | None) -> str:
    """'3' -> '#3', '@=99' -> '@=99', nothing -> ''"""
    if not rev_or_at_label:
        return ""
    return rev_or_at_label if rev_or_at_label.startswith("@") else "#" + rev_or_at_label


def without_rev(path: str, rev_or_at_label: str | None) -> str:
    """Removes a revision suffix from the end of a path, only if it matches."""
    suffix = rev_or_label_as_suffix(rev_or_at_label)
    if suffix and path.endswith(suffix):
        return path[: -len(suffix)]
    return path


def _uri_without_rev(uri: Uri) -> Uri:
    # a local file name may really end in the suffix, only depot paths are stripped
    if not is_depot_uri(uri):
        return uri
    return uri.with_(path=without_rev(uri.path, get_rev_or_at_label(uri)))


def _uri_with_rev(uri: Uri, rev_or_at_label: str | None) -> Uri:
    return uri.with_(fragment=rev_or_at_label or "")


def fs_path_without_rev(uri: Uri) -> str:
    return _uri_without_rev(uri).fs_path


def basename_without_rev(uri: Uri) -> str:
    return os.path.basename(fs_path_without_rev(uri))


def basename_with_rev(uri: Uri, override_rev: str | None = None) -> str:
    """e.g. file.txt#3, for use in diff titles"""
    rev = override_rev if override_rev is not None else get_rev_or_at_label(uri)
    return basename_without_rev(uri) + rev_or_label_as_suffix(rev)


# =========================================================================
# Accessors
# =========================================================================


def _has_truthy_arg(uri: Uri, arg: str) -> bool:
    return bool(decode_arguments(uri.query).get(arg))


def is_depot_uri(uri: Uri) -> bool:
    return _has_truthy_arg(uri, "depot")


def get_depot_path_from_depot_uri(uri: Uri) -> str:
    """
    Reassembles the depot path from the depot name and the uri path.
    Deliberately avoids fs_path, which would turn separators into the local
    platform's and mangle depot paths containing backslashes.
    """
    depot_name = decode_arguments(uri.query).get("depotName")
    if not isinstance(depot_name, str):
        depot_name = uri.authority
    return "//" + depot_name + _uri_without_rev(uri).path


def is_same_file_or_depot_path(a: Uri, b: Uri) -> bool:
    if is_depot_uri(a) and is_depot_uri(b):
        return get_depot_path_from_depot_uri(a) == get_depot_path_from_depot_uri(b)
    return fs_path_without_rev(a) == fs_path_without_rev(b)


def get_workspace_from_query(uri: Uri) -> Uri | None:
    workspace = decode_arguments(uri.query).get("workspace")
    return Uri.file(workspace) if isinstance(workspace, str) and workspace else None


def is_usable_for_workspace(uri: Uri) -> bool:
    """True if the uri can tell us which workspace to run commands in."""
    return (not is_depot_uri(uri) and bool(uri.fs_path)) or _has_truthy_arg(uri, "workspace")


def get_usable_workspace(uri: Uri) -> Uri | None:
    if not is_depot_uri(uri) and uri.fs_path:
        return Uri.file(fs_path_without_rev(uri))
    return get_workspace_from_query(uri)


# =========================================================================
# Factories
# =========================================================================


def parse(value: str) -> Uri:
    """
    Parses an address string, including the form with a revision embedded
    in the path. For revision 1, the string may look like:

        perforce://depot/my/path#1?a=b#1

    standard parsing gives path=/my/path, fragment=1?a=b#1 - what we want is
    path=/my/path#1, query=a=b, fragment=1
    """
    parsed = Uri.parse(value)
    _, _, _, _, fragment = _split(value)
    query_index = fragment.find("?")
    fragment_index = fragment.find("#")
    if query_index < 0 and fragment_index < 0:
        return parsed

    if query_index >= 0 and (fragment_index < 0 or query_index < fragment_index):
        embedded = fragment[:query_index]
        query = fragment[query_index + 1 : fragment_index if fragment_index >= 0 else None]
    else:
        embedded = fragment[:fragment_index]
        query = parsed.query
    new_fragment = fragment[fragment_index + 1 :] if fragment_index >= 0 else ""
    return parsed.with_(
        path=parsed.path + "#" + unquote(embedded),
        query=query,
        fragment=unquote(new_fragment),
    )


def from_uri(uri: Uri, other_args: UriArguments | Mapping[str, ArgValue] | None = None) -> Uri:
    """
    Turns any uri into a perforce uri, keeping its existing query arguments.
    Arguments default to printing the file quietly; other_args override
    existing ones, and a None value removes an argument.
    """
    args: dict[str, ArgValue] = {"command": "print", "p4Args": "-q"}
    args.update(decode_arguments(uri.query))
    if other_args:
        args.update(other_args)
    return uri.with_(scheme=SCHEME, query=encode_arguments(args))


def from_local_path(fs_path: str, rev_or_at_label: str | None = None) -> Uri:
    uri = from_uri(Uri.file(fs_path))
    return with_revision(uri, rev_or_at_label) if rev_or_at_label else uri


def from_depot_path(workspace: Uri, depot_path: str, rev_or_at_label: str | None) -> Uri:
    """
    Makes a uri for a depot path. The depot name and the owning workspace
    are recorded in the query, because they can't reliably be recovered from
    the authority and path on every platform.
    """
    segments = depot_path.split("/")
    depot_name = segments[2] if len(segments) > 2 else ""
    base = Uri(
        scheme=SCHEME,
        authority=depot_name,
        path=depot_path[2 + len(depot_name) :],
        fragment=rev_or_at_label or "",
    )
    owner = get_usable_workspace(workspace) or workspace
    return from_uri(
        base,
        {
            "depot": True,
            "workspace": owner.fs_path,
            "depotName": depot_name,
            "rev": rev_or_at_label,
        },
    )


def for_command(resource: Uri, command: str, p4_args: str) -> Uri:
    """A document address for the output of an arbitrary p4 command."""
    return from_uri(
        Uri(scheme=SCHEME),
        {"command": command, "p4Args": p4_args, "workspace": resource.fs_path},
    )


def with_revision(uri: Uri, rev_or_at_label: str | None) -> Uri:
    """Returns a new perforce uri for a different revision or label."""
    return _uri_with_rev(
        from_uri(_uri_without_rev(uri), {"rev": rev_or_at_label}), rev_or_at_label
    )


def with_args(
    uri: Uri,
    args: UriArguments | Mapping[str, ArgValue],
    rev_or_at_label: str | None = None,
) -> Uri:
    """
    Adds arguments to the uri, replacing any that exist in both.
    The fragment is only touched when a revision is supplied.
    """
    new_args: dict[str, ArgValue] = dict(decode_arguments(uri.query))
    new_args.update(args)
    if rev_or_at_label is None:
        return uri.with_(query=encode_arguments(new_args))
    new_args["rev"] = rev_or_at_label
    return _uri_with_rev(
        _uri_without_rev(uri).with_(query=encode_arguments(new_args)), rev_or_at_label
    )


def as_uri(value: Uri | str) -> Uri:
    """Accepts either an address string or an existing uri."""
    return value if isinstance(value, Uri) else parse(value)
