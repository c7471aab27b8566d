"""
Pytest tests for p4_scm.core.uri module.

Covers the query argument codec, the address factories and the helpers
used to turn addresses back into depot / local paths.
"""

import os
from urllib.parse import quote

import pytest

from p4_scm.core import uri as PerforceUri
from p4_scm.core.uri import Uri

DEPOT_PATH = "//depot/my/path/file.txt"
LOCAL_URI = Uri.file("/home/file.txt")
WORKSPACE_ARG = "workspace=" + quote(LOCAL_URI.fs_path, safe="")


@pytest.mark.unit
class TestQueryCodec:
    """Test encode_arguments / decode_arguments."""

    def test_encode_produces_encoded_query(self):
        query = PerforceUri.encode_arguments(
            {"command": "p&r=int", "p4Args": "-q", "depot": True, "leftUri": None}
        )
        assert query == "command=p%26r%3Dint&p4Args=-q&depot"

    def test_decode_to_mapping(self):
        decoded = PerforceUri.decode_arguments("command=p%26r%3Dint&p4Args=-q&depot")
        assert decoded == {"p4Args": "-q", "command": "p&r=int", "depot": True}

    def test_encode_omits_falsy_values(self):
        assert PerforceUri.encode_arguments({"depot": False, "rev": "", "command": "print"}) == (
            "command=print"
        )

    @pytest.mark.parametrize(
        "args",
        [
            {},
            {"depot": True},
            {"command": "print", "p4Args": "-q -a", "workspace": "/ws/a b"},
            {"leftUri": "perforce://depot/a#1?x=y&z", "rev": "@=99", "depot": True},
        ],
    )
    def test_decode_inverts_encode(self, args):
        assert PerforceUri.decode_arguments(PerforceUri.encode_arguments(args)) == args

    def test_decode_skips_empty_segments(self):
        assert PerforceUri.decode_arguments("&a=1&&b&") == {"a": "1", "b": True}


@pytest.mark.unit
class TestUriValue:
    """Test the Uri value type itself."""

    def test_file_uri(self):
        assert LOCAL_URI.scheme == "file"
        assert LOCAL_URI.path == "/home/file.txt"

    def test_parse_components(self):
        uri = Uri.parse("perforce://depot/a%20b.txt?x=1#3")
        assert uri == Uri("perforce", "depot", "/a b.txt", "x=1", "3")

    def test_to_string_parses_back(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, "//depot/dir/a #b?.txt", "2")
        assert PerforceUri.parse(str(uri)) == uri

    def test_uris_are_immutable(self):
        with pytest.raises(AttributeError):
            LOCAL_URI.path = "/other"  # type: ignore[misc]

    def test_with_returns_new_value(self):
        changed = LOCAL_URI.with_(fragment="3")
        assert changed.fragment == "3"
        assert LOCAL_URI.fragment == ""


@pytest.mark.unit
class TestFactories:
    """Test from_uri, for_command, from_depot_path and with_revision."""

    def test_from_uri_default_command(self):
        uri = PerforceUri.from_uri(LOCAL_URI)
        assert uri.scheme == "perforce"
        assert uri.fs_path == LOCAL_URI.fs_path
        assert uri.query == "command=print&p4Args=-q"

    def test_from_uri_overrides_defaults(self):
        uri = PerforceUri.from_uri(LOCAL_URI, {"command": "opened", "p4Args": None})
        assert uri.fs_path == LOCAL_URI.fs_path
        assert uri.query == "command=opened"

    def test_for_command(self):
        uri = PerforceUri.for_command(LOCAL_URI, "set", "-q")
        assert uri.scheme == "perforce"
        assert uri.fs_path == ""
        assert uri.query == "command=set&p4Args=-q&" + WORKSPACE_ARG

    def test_from_depot_path(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "2")
        assert uri.scheme == "perforce"
        assert uri.authority == "depot"
        assert uri.path == "/my/path/file.txt"
        assert uri.query == (
            "command=print&p4Args=-q&depot&" + WORKSPACE_ARG + "&depotName=depot&rev=2"
        )
        assert uri.fragment == "2"

    def test_from_depot_path_without_revision(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, None)
        assert uri.path == "/my/path/file.txt"
        assert uri.query == "command=print&p4Args=-q&depot&" + WORKSPACE_ARG + "&depotName=depot"
        assert uri.fragment == ""

    def test_local_path_with_label(self):
        uri = PerforceUri.from_local_path(LOCAL_URI.fs_path, "@=99")
        assert uri.scheme == "perforce"
        assert uri.fs_path == LOCAL_URI.fs_path
        assert uri.query == "command=print&p4Args=-q&rev=%40%3D99"
        assert uri.fragment == "@=99"

    def test_with_revision_is_idempotent(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "2")
        once = PerforceUri.with_revision(uri, "5")
        assert PerforceUri.with_revision(once, "5") == once
        assert once.fragment == "5"
        assert PerforceUri.decode_arguments(once.query)["rev"] == "5"

    def test_with_revision_none_clears_revision(self):
        uri = PerforceUri.with_revision(PerforceUri.from_local_path("/ws/a.txt", "3"), None)
        assert uri.fragment == ""
        assert "rev" not in PerforceUri.decode_arguments(uri.query)


@pytest.mark.unit
class TestWithArgs:
    """Test with_args."""

    def test_augments_existing_arguments(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "2")
        left = PerforceUri.from_local_path(LOCAL_URI.fs_path, "1")
        augmented = PerforceUri.with_args(uri, {"leftUri": str(left)})
        assert PerforceUri.decode_arguments(augmented.query)["leftUri"] == str(left)
        assert augmented.query.startswith(
            "command=print&p4Args=-q&depot&" + WORKSPACE_ARG + "&depotName=depot&rev=2&leftUri="
        )

    def test_overrides_existing_arguments(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "2")
        augmented = PerforceUri.with_args(uri, {"p4Args": "hello"})
        assert augmented.query == (
            "command=print&p4Args=hello&depot&" + WORKSPACE_ARG + "&depotName=depot&rev=2"
        )

    def test_keeps_fragment_without_revision(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "3")
        assert PerforceUri.with_args(uri, {"p4Args": "x"}).fragment == "3"

    def test_replaces_fragment_with_revision(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "3")
        augmented = PerforceUri.with_args(uri, {"p4Args": "x"}, "7")
        assert augmented.fragment == "7"
        assert augmented.query.endswith("&depotName=depot&rev=7")


@pytest.mark.unit
class TestAccessors:
    """Test depot / workspace accessors."""

    def test_is_depot_uri(self):
        assert PerforceUri.is_depot_uri(PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, None))
        assert not PerforceUri.is_depot_uri(LOCAL_URI)
        assert not PerforceUri.is_depot_uri(PerforceUri.from_uri(LOCAL_URI))

    def test_usable_for_workspace(self):
        no_workspace = PerforceUri.from_uri(Uri.parse("perforce://depot/hello"), {"depot": True})
        assert PerforceUri.is_usable_for_workspace(LOCAL_URI)
        assert not PerforceUri.is_usable_for_workspace(no_workspace)
        assert PerforceUri.is_usable_for_workspace(
            PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "2")
        )

    def test_get_workspace_from_query(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "2")
        assert PerforceUri.get_workspace_from_query(uri) == Uri.file(LOCAL_URI.fs_path)
        no_workspace = PerforceUri.from_uri(Uri.parse("perforce://depot/hello"), {"depot": True})
        assert PerforceUri.get_workspace_from_query(no_workspace) is None

    def test_get_usable_workspace(self):
        assert PerforceUri.get_usable_workspace(PerforceUri.from_uri(LOCAL_URI)) == Uri.file(
            LOCAL_URI.fs_path
        )
        assert PerforceUri.get_usable_workspace(
            PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "2")
        ) == Uri.file(LOCAL_URI.fs_path)

    @pytest.mark.parametrize(
        "depot_path",
        [DEPOT_PATH, "//DepOt/myFile", "//depot/with\\backslash/file.txt", "//depot/a b/#c.txt"],
    )
    def test_depot_path_survives_the_address(self, depot_path):
        uri = PerforceUri.from_depot_path(LOCAL_URI, depot_path, "2")
        assert PerforceUri.get_depot_path_from_depot_uri(uri) == depot_path

    def test_same_file_or_depot_path(self):
        a = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "2")
        b = PerforceUri.from_depot_path(Uri.file("/other/ws"), DEPOT_PATH, "5")
        assert PerforceUri.is_same_file_or_depot_path(a, b)
        assert PerforceUri.is_same_file_or_depot_path(
            PerforceUri.from_local_path("/ws/a.txt", "1"), Uri.file("/ws/a.txt")
        )
        assert not PerforceUri.is_same_file_or_depot_path(
            Uri.file("/ws/a.txt"), Uri.file("/ws/b.txt")
        )


@pytest.mark.unit
class TestParse:
    """Test parse, including revisions embedded in the path."""

    def test_embedded_revision(self):
        uri = PerforceUri.parse("perforce://depot/a/myFile#2?a=b#2")
        assert uri.authority == "depot"
        assert uri.fragment == "2"
        assert uri.query == "a=b"
        assert uri.path == "/a/myFile#2"

    def test_embedded_revision_without_fragment(self):
        uri = PerforceUri.parse("perforce://depot/a/myFile#2?a=b")
        assert uri.fragment == ""
        assert uri.query == "a=b"
        assert uri.path == "/a/myFile#2"

    def test_embedded_revision_without_query(self):
        uri = PerforceUri.parse("perforce://depot/a/myFile#2#2")
        assert uri.fragment == "2"
        assert uri.query == ""
        assert uri.path == "/a/myFile#2"

    def test_plain_fragment(self):
        uri = PerforceUri.parse("perforce://depot/a/myFile#2")
        assert uri.fragment == "2"
        assert uri.query == ""
        assert uri.path == "/a/myFile"

    def test_embedded_revision_depot_path(self):
        uri = PerforceUri.parse("perforce://depot/a/myFile#2?depot&depotName=depot&rev=2#2")
        assert PerforceUri.get_depot_path_from_depot_uri(uri) == "//depot/a/myFile"

    def test_query_stays_encoded(self):
        uri = PerforceUri.parse("perforce://depot/a#2?command=p%26r#2")
        assert uri.query == "command=p%26r"
        assert PerforceUri.decode_arguments(uri.query) == {"command": "p&r"}


@pytest.mark.unit
class TestRevisionHelpers:
    """Test the revision / label suffix helpers."""

    @pytest.mark.parametrize(
        "rev, expected", [("3", "#3"), ("@=99", "@=99"), ("@label", "@label"), ("", ""), (None, "")]
    )
    def test_rev_or_label_as_suffix(self, rev, expected):
        assert PerforceUri.rev_or_label_as_suffix(rev) == expected

    def test_without_rev(self):
        assert PerforceUri.without_rev("/my/path#2", "2") == "/my/path"
        assert PerforceUri.without_rev("/my/path@=99", "@=99") == "/my/path"
        assert PerforceUri.without_rev("/my/path#2", "3") == "/my/path#2"

    def test_fs_path_without_rev(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "@=99")
        assert PerforceUri.fs_path_without_rev(uri) == os.sep + os.path.join(
            "my", "path", "file.txt"
        )

    def test_fs_path_without_rev_keeps_local_names(self):
        uri = PerforceUri.from_local_path("/ws/notes#3", "3")
        assert PerforceUri.fs_path_without_rev(uri) == Uri.file("/ws/notes#3").fs_path

    def test_fs_path_without_rev_keeps_non_matching_parts(self):
        uri = PerforceUri.parse("perforce://depot/a/myFile#2?a=b#3")
        assert PerforceUri.fs_path_without_rev(uri) == uri.fs_path

    def test_basenames(self):
        uri = PerforceUri.from_depot_path(LOCAL_URI, DEPOT_PATH, "4")
        assert PerforceUri.basename_without_rev(uri) == "file.txt"
        assert PerforceUri.basename_with_rev(uri) == "file.txt#4"
        assert PerforceUri.basename_with_rev(uri, "@=12") == "file.txt@=12"
