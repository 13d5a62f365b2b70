"""
L4 Execution — The in-process search path.

A SearchPath is the run's view of PATH. Installers extend it when a
strategy puts a tool somewhere new, so later presence checks and
commands in the same run see the tool without a new shell. It only
touches the real process environment when ``export`` is called.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping, MutableMapping

from provisioner.core.services.tool_install.detection.command import resolve_command

logger = logging.getLogger(__name__)


def normalize_entry(entry: str) -> str:
    """Comparable form of a PATH entry (case-folded where the OS is)."""
    if not entry:
        return ""
    expanded = os.path.expanduser(entry.strip().strip('"'))
    return os.path.normcase(os.path.normpath(expanded))


class SearchPath:
    """Ordered PATH entries plus the environment commands run with."""

    def __init__(
        self,
        value: str | None = None,
        environ: Mapping[str, str] | None = None,
        sep: str = os.pathsep,
    ):
        self._base = dict(os.environ if environ is None else environ)
        self._sep = sep
        raw = self._base.get("PATH", "") if value is None else value
        self._entries: list[str] = [e for e in raw.split(sep) if e]

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def value(self) -> str:
        return self._sep.join(self._entries)

    def contains(self, entry: str) -> bool:
        wanted = normalize_entry(entry)
        return any(normalize_entry(e) == wanted for e in self._entries)

    def prepend(self, entry: str) -> bool:
        """Put ``entry`` first unless already present. Returns True if added."""
        if not entry or self.contains(entry):
            return False
        self._entries.insert(0, entry)
        logger.debug("PATH += %s", entry)
        return True

    def prepend_all(self, entries: Iterable[str]) -> list[str]:
        """Prepend each entry in order; returns the ones actually added."""
        return [e for e in entries if self.prepend(e)]

    def which(self, name: str) -> str | None:
        return resolve_command(name, self.value)

    def exists(self, name: str) -> bool:
        return self.which(name) is not None

    def environ(self) -> dict[str, str]:
        """Environment mapping for child processes, with this PATH."""
        env = dict(self._base)
        env["PATH"] = self.value
        return env

    def export(self, target: MutableMapping[str, str] | None = None) -> None:
        """Write this PATH into ``target`` (default: the process environment)."""
        target = os.environ if target is None else target
        target["PATH"] = self.value

    def __repr__(self) -> str:
        return f"<SearchPath entries={len(self._entries)}>"
