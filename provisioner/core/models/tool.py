"""
Tool catalog models — what can be installed, and how.

A ToolSpec names a tool and carries its ordered strategy templates.
Strategies are data: the resolver filters, renders and orders them,
the installer runs them. Neither model is ever mutated.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

ANY_OS = "any"


class Strategy(BaseModel):
    """One concrete way of installing a tool."""

    model_config = ConfigDict(frozen=True)

    label: str                                  # e.g. "apt-get", "npm-user-prefix"
    method: str                                 # family: pm, npm, download, script
    os_family: str = ANY_OS                     # windows | macos | linux | any
    arches: tuple[str, ...] = ()                # empty = every arch

    # Precondition
    requires: tuple[str, ...] = ()              # all must resolve on PATH
    requires_any: tuple[str, ...] = ()          # at least one must resolve
    needs_elevation: bool = False

    # Action
    commands: tuple[tuple[str, ...], ...] = ()  # argv lists, run in order
    timeout: int = 300                          # seconds, per command
    network: bool = False                       # retry-eligible

    # Directory this strategy makes the tool reachable from
    path_entry: str | None = None

    @property
    def mutates_path(self) -> bool:
        """Whether a successful run is expected to need a PATH change."""
        return self.path_entry is not None

    @property
    def precondition_cost(self) -> int:
        """Number of PATH lookups needed to evaluate the precondition."""
        return len(self.requires) + len(self.requires_any)

    def applies_to(self, os_family: str, arch: str) -> bool:
        if self.os_family not in (ANY_OS, os_family):
            return False
        return not self.arches or arch in self.arches


class ToolSpec(BaseModel):
    """A provisionable tool and its strategy table."""

    model_config = ConfigDict(frozen=True)

    name: str                                   # config / CLI identifier
    label: str = ""
    executable: str | None = None               # presence check via PATH
    version_command: tuple[str, ...] = ()       # verification probe
    presence_path: str | None = None            # presence marker for non-executables
    required: bool = False

    strategies: tuple[Strategy, ...] = ()
    unsupported_platforms: tuple[tuple[str, str], ...] = ()

    depends_on: tuple[str, ...] = ()
    companions: tuple[str, ...] = ()            # must resolve whenever the tool does
    config_file: str | None = None              # tracked JSON config ({home} allowed)
    manual_hint: str = ""
    container_hint: str = ""                    # appended to failures inside containers

    plugin_dir: str | None = None               # listed by status/diagnostics

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def is_unsupported_on(self, os_family: str, arch: str) -> bool:
        return (os_family, arch) in self.unsupported_platforms

