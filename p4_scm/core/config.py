"""
Configuration for running p4 commands: which executable to run, the
connection settings passed on every invocation, and tuning values used by
the command facade.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, cast

from P4 import P4, P4Exception as P4LibException  # type: ignore

log = logging.getLogger(__name__)

SETTINGS_PREFIX = "perforce."


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        log.warning(f"Ignoring invalid integer setting {value!r}, using {default}")
        return default


def _as_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        log.warning(f"Ignoring invalid timeout setting {value!r}")
        return None


@dataclass(frozen=True)
class P4Config:
    p4_path: str = "p4"
    port: str | None = None
    user: str | None = None
    client: str | None = None
    charset: str | None = None
    max_file_per_command: int = 32
    command_timeout: float | None = None
    swarm_host: str | None = None
    changelist_search_max_results: int = 200

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "P4Config":
        """
        Reads plain key/value settings, e.g. {"perforce.port": "ssl:p4:1666"}.
        Missing or empty values fall back to the defaults.
        """

        def get(key: str) -> Any:
            value = settings.get(SETTINGS_PREFIX + key)
            return value if value != "" else None

        return cls(
            p4_path=get("command") or "p4",
            port=get("port"),
            user=get("user"),
            client=get("client"),
            charset=get("charset"),
            max_file_per_command=_as_int(get("maxFilePerCommand") or 32, 32),
            command_timeout=_as_float(get("commandTimeout")),
            swarm_host=get("swarmHost"),
            changelist_search_max_results=_as_int(
                get("changelistSearch.maxResults") or 200, 200
            ),
        )

    @classmethod
    def from_environment(cls, cwd: str | None = None, **overrides: Any) -> "P4Config":
        """
        Resolves the connection settings the way p4 itself would, including
        P4CONFIG / P4ENVIRO files found from cwd. No connection is made.
        """
        p4 = P4()
        try:
            if cwd:
                p4.cwd = cwd  # reloads P4CONFIG for the new directory
        except P4LibException as e:
            log.warning(f"Could not read p4 settings for {cwd}: {e}")

        def setting(attr: str, env_var: str) -> str | None:
            value = cast(str | None, getattr(p4, attr, None)) or os.getenv(env_var)
            return value or None

        values: dict[str, Any] = {
            "port": setting("port", "P4PORT"),
            "user": setting("user", "P4USER"),
            "client": setting("client", "P4CLIENT"),
            "charset": setting("charset", "P4CHARSET"),
        }
        # "none" is P4Python's way of saying no charset is set
        if values["charset"] == "none":
            values["charset"] = None
        values.update(overrides)
        log.debug(
            f"Resolved p4 settings: port={values['port']} user={values['user']} "
            f"client={values['client']}"
        )
        return cls(**values)

    def get_swarm_link(self, chnum: str) -> str | None:
        """
        Link to a change in Swarm. The host may contain a ${chnum} placeholder,
        otherwise the standard /changes/ path is appended.
        """
        if not self.swarm_host:
            return None
        if "${chnum}" in self.swarm_host:
            return self.swarm_host.replace("${chnum}", chnum)
        return self.swarm_host + "/changes/" + chnum

    def global_args(self) -> list[str]:
        """Connection arguments placed before the command name."""
        args: list[str] = []
        if self.port:
            args += ["-p", self.port]
        if self.user:
            args += ["-u", self.user]
        if self.client:
            args += ["-c", self.client]
        if self.charset:
            args += ["-C", self.charset]
        return args
